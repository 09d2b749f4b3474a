"""Completion providers.

Usage:
    from planforge.providers import get_provider

    provider = get_provider("gemini")
    text, model = provider.generate(system="...", prompt="...", cancel_check=token.is_set)
"""

from planforge.providers.base import LLMProvider
from planforge.providers.registry import get_provider, list_providers, register_provider

__all__ = ["LLMProvider", "get_provider", "list_providers", "register_provider"]
