"""Shared fixtures for planforge tests."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure project root is on path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

# ── Environment isolation ───────────────────────────────────────────────
# Prevent tests from touching real API keys / services


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path):
    """Isolate every test from real env vars and filesystem side effects."""
    monkeypatch.setenv("GOOGLE_API_KEY", "")
    monkeypatch.setenv("OLLAMA_BASE_URL", "http://localhost:11444/v1")
    monkeypatch.setenv("OLLAMA_API_KEY", "test-key")
    monkeypatch.setenv("DEFAULT_PROVIDER", "ollama")
    monkeypatch.setenv("STRICT_MODE", "false")
    monkeypatch.setenv("MIN_RETRY_DELAY_REMOTE", "0")
    monkeypatch.setenv("MIN_RETRY_DELAY_LOCAL", "0")
    monkeypatch.setenv("AI_RETRY_CYCLES", "2")
    monkeypatch.setenv("LOG_FILE", str(tmp_path / "planforge.log"))

    # Clear the cached settings singleton so each test picks up monkeypatched env
    from planforge.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# ── Reusable fixtures ──────────────────────────────────────────────────


@pytest.fixture
def events():
    """Observer that records every StageEvent; the list is the fixture value."""

    class _Recorder(list):
        def __call__(self, event):
            self.append(event)

    return _Recorder()


@pytest.fixture
def stub_provider():
    """Factory for an in-process LLMProvider whose model calls are scripted."""
    from planforge.providers.base import LLMProvider

    def _factory(*responses, delay: float = 0.0):
        script = list(responses)

        class _Scripted(LLMProvider):
            name = "stub"
            default_model_list = ["stub-model"]

            def __init__(self, api_keys=None):
                super().__init__(api_keys=api_keys or ["k"])
                self.calls = 0

            def _resolve_env_keys(self):
                return ["k"]

            def _call_model(self, **kwargs):
                import time

                self.calls += 1
                if delay:
                    time.sleep(delay)
                item = script.pop(0) if script else ""
                if isinstance(item, Exception):
                    raise item
                return item

        return _Scripted()

    return _factory
