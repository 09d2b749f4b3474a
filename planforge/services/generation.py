"""Structured generation: completion call raced against a timeout, then recovery.

Orchestrates: provider.generate() + system instructions + the repair
pipeline.  When the completion loses the race the in-flight provider loop is
cancelled through its ``CancelToken`` and the caller gets the placeholder
object for the schema, without the pipeline running at all.
"""

from __future__ import annotations

from planforge.config import get_settings
from planforge.core.cancellation import CancelToken
from planforge.core.executor import DeadlineExceeded, call_with_deadline, call_with_deadline_async, run_in_executor
from planforge.core.log import logging_observer, request_context, safe_print, timed
from planforge.prompts.generation import SYSTEM_INSTRUCTIONS
from planforge.providers.base import LLMProvider
from planforge.providers.registry import get_provider
from planforge.repair.events import Observer, Stage, StageEvent
from planforge.repair.pipeline import RecoveryResult, recover
from planforge.schemas.fallback import synthesize_fallback
from planforge.schemas.models import SchemaKind


class GenerationTimeoutError(TimeoutError):
    """Strict mode: the completion did not arrive within the time limit."""


def _resolve_provider(provider: str | LLMProvider | None, api_keys: list[str] | None) -> LLMProvider:
    if isinstance(provider, LLMProvider):
        return provider
    return get_provider(provider or get_settings().default_provider, api_keys=api_keys)


def _complete(llm: LLMProvider, kind: SchemaKind, prompt: str, token: CancelToken) -> str:
    text, model = llm.generate(
        system=SYSTEM_INSTRUCTIONS[kind],
        prompt=prompt,
        cancel_check=token.is_set,
        response_format_json=True,
    )
    safe_print(f"[{kind.value}] {len(text)} chars from {model}")
    return text


def _timed_out(kind: SchemaKind, limit: float, strict: bool | None, observer: Observer | None) -> RecoveryResult:
    emit = observer if observer is not None else logging_observer
    emit(StageEvent(Stage.TIMEOUT, "expired", {"schema": kind.value, "timeout": limit}))
    if strict is None:
        strict = get_settings().strict_mode
    if strict:
        raise GenerationTimeoutError(f"{kind.value} generation timed out after {limit:g}s")
    emit(StageEvent(Stage.FALLBACK, "used", {"schema": kind.value, "reason": "timeout"}))
    return RecoveryResult(kind, synthesize_fallback(kind), Stage.TIMEOUT, was_modified=False, used_fallback=True)


def generate_structured(
    kind: SchemaKind | str,
    prompt: str,
    *,
    provider: str | LLMProvider | None = None,
    api_keys: list[str] | None = None,
    timeout: float | None = None,
    strict: bool | None = None,
    observer: Observer | None = None,
) -> RecoveryResult:
    """Generate a *kind* object for *prompt*; blocks for at most *timeout* seconds.

    Provider failures (``ValueError``) propagate.  A timeout yields the
    placeholder object, or :class:`GenerationTimeoutError` in strict mode.
    """
    kind = SchemaKind(kind)
    limit = timeout if timeout is not None else get_settings().timeout_for(kind)
    llm = _resolve_provider(provider, api_keys)
    token = CancelToken()

    with request_context() as rid:
        safe_print(f"[{rid}] Generating {kind.value} (provider={llm.name}, timeout={limit:g}s)")
        with timed("generate_structured", schema=kind.value, provider=llm.name):
            try:
                raw = call_with_deadline(_complete, llm, kind, prompt, token, limit=limit, cancel=token)
            except DeadlineExceeded:
                return _timed_out(kind, limit, strict, observer)
            return recover(raw, kind, observer=observer, strict=strict)


async def generate_structured_async(
    kind: SchemaKind | str,
    prompt: str,
    *,
    provider: str | LLMProvider | None = None,
    api_keys: list[str] | None = None,
    timeout: float | None = None,
    strict: bool | None = None,
    observer: Observer | None = None,
) -> RecoveryResult:
    """``await``-able :func:`generate_structured` for async callers."""
    kind = SchemaKind(kind)
    limit = timeout if timeout is not None else get_settings().timeout_for(kind)
    llm = _resolve_provider(provider, api_keys)
    token = CancelToken()

    with request_context() as rid:
        safe_print(f"[{rid}] Generating {kind.value} (provider={llm.name}, timeout={limit:g}s)")
        with timed("generate_structured_async", schema=kind.value, provider=llm.name):
            try:
                raw = await call_with_deadline_async(_complete, llm, kind, prompt, token, limit=limit, cancel=token)
            except DeadlineExceeded:
                return _timed_out(kind, limit, strict, observer)
            return await run_in_executor(recover, raw, kind, observer=observer, strict=strict)
