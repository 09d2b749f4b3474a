"""Ollama provider: a local model server behind the OpenAI-compatible API.

Differs from the hosted provider in three ways: the "key" slot carries the
server base URL, retries wait ``min_retry_delay_local`` instead of the
remote delay, and requests get the long ``ollama_timeout`` because large
local models are slow.
"""

from __future__ import annotations

import logging
from typing import Any, ClassVar

from openai import OpenAI

from planforge.config import get_settings
from planforge.core.log import safe_print
from planforge.providers.base import (
    LLMProvider,
    _AbortAllError,
    _PermanentModelError,
    _SkipModelError,
)


class OllamaProvider(LLMProvider):
    name = "ollama"

    default_model_list: ClassVar[list[str]] = [
        "qwen2.5:14b",
        "llama3.1:8b",
        "gemma3:27b",
        "qwen2.5:72b",
    ]

    def __init__(self, api_keys: list[str] | None = None, base_url: str | None = None):
        super().__init__(api_keys)
        self.base_url = base_url or get_settings().ollama_base_url

    def _resolve_env_keys(self) -> list[str]:
        return [self.base_url]

    def _min_retry_delay(self) -> float:
        return get_settings().min_retry_delay_local

    def _call_model(
        self,
        *,
        key: str,  # the base URL
        model: str,
        system: str,
        prompt: str,
        response_format_json: bool,
        temperature: float,
    ) -> str:
        settings = get_settings()
        base = key if key.startswith("http") else self.base_url
        safe_print(f"Ollama @ {base} -> {model}", logging.DEBUG)

        client = OpenAI(base_url=base, api_key=settings.ollama_api_key, timeout=settings.ollama_timeout)
        return chat_completion(client, model, system, prompt, response_format_json, temperature)


def chat_completion(
    client: OpenAI,
    model: str,
    system: str,
    prompt: str,
    response_format_json: bool,
    temperature: float,
) -> str:
    messages = []
    if system:
        messages.append({"role": "system", "content": system})
    messages.append({"role": "user", "content": prompt})

    kwargs: dict[str, Any] = {"model": model, "messages": messages, "temperature": temperature}
    if response_format_json:
        kwargs["response_format"] = {"type": "json_object"}

    try:
        resp = client.chat.completions.create(**kwargs)
    except Exception as exc:
        raise classify_ollama_error(exc, model) from exc
    return resp.choices[0].message.content or ""


def classify_ollama_error(exc: Exception, model: str) -> Exception:
    msg = str(exc)
    low = msg.lower()
    if "connection" in low or "connect" in low:
        return _AbortAllError("Cannot reach the Ollama server; is it running on the configured port?")
    if "404" in msg or ("model" in low and "not found" in low):
        return _PermanentModelError(f"Model {model} not found on Ollama server")
    if "429" in msg or "rate" in low:
        return _SkipModelError(f"Rate limited for {model}")
    return _SkipModelError(msg[:150])
