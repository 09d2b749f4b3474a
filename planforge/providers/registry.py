"""Provider registry.

Usage:
    from planforge.providers import get_provider

    provider = get_provider("ollama")
    text, model = provider.generate(system="...", prompt="...")
"""

from __future__ import annotations

from planforge.providers.base import LLMProvider
from planforge.providers.gemini import GeminiProvider
from planforge.providers.ollama import OllamaProvider

_PROVIDERS: dict[str, type[LLMProvider]] = {
    "gemini": GeminiProvider,
    "ollama": OllamaProvider,
}


def register_provider(name: str, cls: type[LLMProvider]) -> None:
    """Register a custom provider at runtime."""
    _PROVIDERS[name.lower()] = cls


def get_provider(
    name: str,
    *,
    api_keys: list[str] | None = None,
    base_url: str | None = None,
) -> LLMProvider:
    """Instantiate a provider by name; ``base_url`` only applies to Ollama."""
    key = name.lower().strip()
    cls = _PROVIDERS.get(key)
    if cls is None:
        available = ", ".join(sorted(_PROVIDERS))
        raise ValueError(f"Unknown provider '{name}'. Available: {available}")

    if issubclass(cls, OllamaProvider):
        return cls(api_keys=api_keys, base_url=base_url)
    return cls(api_keys=api_keys)


def list_providers() -> list[str]:
    return sorted(_PROVIDERS)
