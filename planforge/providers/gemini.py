"""Google Gemini provider (google-genai SDK), JSON response mode."""

from __future__ import annotations

import logging
from typing import ClassVar

from google import genai
from google.genai import types

from planforge.config import get_settings
from planforge.core.log import safe_print
from planforge.providers.base import (
    LLMProvider,
    _AbortAllError,
    _PermanentModelError,
    _SkipModelError,
)


class GeminiProvider(LLMProvider):
    name = "gemini"
    default_model_list: ClassVar[list[str]] = [
        "gemini-2.5-flash",
        "gemini-2.5-pro",
        "gemini-2.0-flash",
        "gemini-1.5-pro",
        "gemini-1.5-flash",
    ]

    def _resolve_env_keys(self) -> list[str]:
        key = get_settings().google_api_key
        return [key] if key else []

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
        safe_print(f"Gemini -> {model}", logging.DEBUG)
        client = genai.Client(api_key=key)
        config = types.GenerateContentConfig(
            system_instruction=system or None,
            response_mime_type="application/json" if response_format_json else "text/plain",
            temperature=temperature,
        )

        try:
            response = client.models.generate_content(
                model=model,
                contents=[types.Content(role="user", parts=[types.Part.from_text(text=prompt)])],
                config=config,
            )
        except Exception as exc:
            raise classify_gemini_error(exc, model) from exc

        # ``.text`` raises when the candidate was blocked by a safety filter
        try:
            return response.text or ""
        except ValueError as blocked:
            raise _SkipModelError(f"Blocked response from {model}: {blocked}") from blocked


def classify_gemini_error(exc: Exception, model: str) -> Exception:
    """Map an SDK error onto the retry loop's sentinel exceptions."""
    msg = str(exc)
    if "RESOURCE_EXHAUSTED" in msg or "429" in msg:
        if "limit: 0" in msg or "limit:0" in msg:
            return _PermanentModelError(f"Quota=0 for {model}")
        return _SkipModelError(f"Rate limited (429) for {model}")
    if "NOT_FOUND" in msg or "404" in msg:
        return _PermanentModelError(f"Model {model} not found (404)")
    if "API key not valid" in msg or "PERMISSION_DENIED" in msg:
        return _AbortAllError("Gemini rejected the API key")
    return _SkipModelError(msg[:150])
