"""Abstract base for completion providers.

A provider turns ``(system, prompt)`` into raw model text.  Subclasses only
implement :meth:`LLMProvider._call_model`; key rotation, the cyclic model
fallback and the delay between retries live here.  What comes back is raw
text: the repair pipeline owns everything after that.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import ClassVar

from planforge.config import get_settings
from planforge.core.log import safe_print

CancelCheck = Callable[[], bool]


class LLMProvider(ABC):
    """Completion strategy plus the shared retry/fallback loop."""

    name: str = "base"

    default_model_list: ClassVar[list[str]] = []

    def __init__(self, api_keys: list[str] | None = None):
        self.api_keys = api_keys or []

    # ── Public API ──────────────────────────────────────────────────────

    def generate(
        self,
        *,
        system: str,
        prompt: str,
        model_list: list[str] | None = None,
        cancel_check: CancelCheck | None = None,
        response_format_json: bool = True,
        temperature: float | None = None,
    ) -> tuple[str, str]:
        """Return ``(response_text, model_name_used)``.

        Tries each key in turn; for each key, cycles through the model list.
        Raises ``ValueError`` once every key is exhausted or on cancellation.
        """
        temperature = temperature if temperature is not None else get_settings().default_temperature
        models = model_list or self.default_model_list
        if not models:
            raise ValueError(f"[{self.name}] No models configured.")

        keys = self.api_keys or self._resolve_env_keys()
        if not keys:
            raise ValueError(
                f"[{self.name}] No API keys / endpoints configured.  "
                "Set the corresponding environment variable or pass keys explicitly."
            )

        last_exc: Exception | None = None
        for idx, key in enumerate(keys):
            safe_print(f"[{self.name}] Key {idx + 1}/{len(keys)}")
            try:
                self._check_cancel(cancel_check)
                return self._retry_loop(
                    key=key,
                    system=system,
                    prompt=prompt,
                    models=models,
                    cancel_check=cancel_check,
                    response_format_json=response_format_json,
                    temperature=temperature,
                )
            except _CancelledError:
                raise ValueError("Operation cancelled.") from None
            except Exception as exc:
                safe_print(f"[{self.name}] Key {idx + 1} failed: {str(exc)[:120]}")
                last_exc = exc

        raise ValueError(f"[{self.name}] All keys exhausted. Last error: {last_exc}")

    # ── Internals ───────────────────────────────────────────────────────

    def _retry_loop(
        self,
        *,
        key: str,
        system: str,
        prompt: str,
        models: list[str],
        cancel_check: CancelCheck | None,
        response_format_json: bool,
        temperature: float,
    ) -> tuple[str, str]:
        permanently_failed: set[str] = set()
        model_last_used: dict[str, float] = {}
        min_delay = self._min_retry_delay()
        total_cycles = get_settings().ai_retry_cycles
        last_error: Exception | None = None

        for cycle in range(1, total_cycles + 1):
            self._check_cancel(cancel_check)
            safe_print(f"[{self.name}] Cycle {cycle}/{total_cycles}")

            if all(m in permanently_failed for m in models):
                safe_print(f"[{self.name}] Every model failed permanently. Stopping.")
                break

            for model_name in models:
                if model_name in permanently_failed:
                    continue

                self._smart_wait(model_name, model_last_used, min_delay, cancel_check)
                model_last_used[model_name] = time.time()

                try:
                    text = self._call_model(
                        key=key,
                        model=model_name,
                        system=system,
                        prompt=prompt,
                        response_format_json=response_format_json,
                        temperature=temperature,
                    )
                except _PermanentModelError as pme:
                    safe_print(f"[{model_name}] Permanent failure: {pme}. Removing.")
                    permanently_failed.add(model_name)
                    last_error = pme
                    continue
                except _SkipModelError as sme:
                    safe_print(f"[{model_name}] Temporary failure: {sme}. Skipping.")
                    last_error = sme
                    continue
                except _AbortAllError as aae:
                    raise ValueError(str(aae)) from aae
                except _CancelledError:
                    raise
                except Exception as exc:
                    safe_print(f"[{model_name}] Unexpected: {str(exc)[:150]}. Skipping.")
                    last_error = exc
                    continue

                if text and text.strip():
                    safe_print(f"[{self.name}] Completion from {model_name} ({len(text)} chars).")
                    return text, model_name
                safe_print(f"[{model_name}] Empty response. Skipping...")

            if cycle < total_cycles:
                safe_print(f"[{self.name}] Cycle {cycle} produced nothing. Next cycle...")
                time.sleep(min(min_delay, 1.0))

        raise ValueError(f"[{self.name}] All models failed after {total_cycles} cycles. Last error: {last_error}")

    # ── Subclass contract ───────────────────────────────────────────────

    @abstractmethod
    def _call_model(
        self,
        *,
        key: str,
        model: str,
        system: str,
        prompt: str,
        response_format_json: bool,
        temperature: float,
    ) -> str:
        """Execute a single model call and return its raw text.

        Raise:
            _PermanentModelError – model should never be retried (404, quota=0).
            _SkipModelError      – try the next model in this cycle (rate-limit, content filter).
            _AbortAllError       – stop all retries immediately (invalid API key, server down).
        """

    @abstractmethod
    def _resolve_env_keys(self) -> list[str]:
        """Return API keys from configuration when none were passed explicitly."""

    def _min_retry_delay(self) -> float:
        return get_settings().min_retry_delay_remote

    # ── Helpers ─────────────────────────────────────────────────────────

    @staticmethod
    def _check_cancel(cancel_check: CancelCheck | None) -> None:
        if cancel_check and cancel_check():
            safe_print("Cancel requested. Aborting.")
            raise _CancelledError()

    @staticmethod
    def _smart_wait(
        model: str,
        timestamps: dict[str, float],
        min_delay: float,
        cancel_check: CancelCheck | None,
    ) -> None:
        last = timestamps.get(model, 0)
        if last == 0:
            return
        remaining = min_delay - (time.time() - last)
        if remaining <= 0:
            return
        safe_print(f"[{model}] Waiting {remaining:.1f}s before retry...")
        step = 0.5
        while remaining > 0:
            if cancel_check and cancel_check():
                raise _CancelledError()
            time.sleep(min(step, remaining))
            remaining -= step


# ── Sentinel exception hierarchy (internal only) ───────────────────────


class _PermanentModelError(Exception):
    """Model should be removed from the retry list (404, limit=0)."""


class _SkipModelError(Exception):
    """Skip to the next model in this cycle (429, content filter)."""


class _AbortAllError(Exception):
    """Stop all retries immediately (invalid API key)."""


class _CancelledError(Exception):
    """The caller's cancel check fired; surfaces as ``ValueError``."""
