"""Tests for planforge.providers — registry, base retry loop, and concrete providers."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from planforge.providers.base import LLMProvider, _AbortAllError, _PermanentModelError, _SkipModelError
from planforge.providers.gemini import GeminiProvider, classify_gemini_error
from planforge.providers.ollama import OllamaProvider, classify_ollama_error
from planforge.providers.registry import get_provider, list_providers, register_provider

# ── Registry tests ──────────────────────────────────────────────────────


class TestRegistry:
    """Test provider discovery and instantiation."""

    def test_list_providers_returns_expected(self):
        providers = list_providers()
        assert "gemini" in providers
        assert "ollama" in providers
        assert providers == sorted(providers)

    def test_get_provider_case_insensitive(self):
        assert get_provider("  OLLAMA ").name == "ollama"

    def test_get_provider_gemini(self):
        provider = get_provider("gemini", api_keys=["test-key"])
        assert isinstance(provider, GeminiProvider)
        assert provider.api_keys == ["test-key"]

    def test_ollama_base_url_override(self):
        provider = get_provider("ollama", base_url="http://gpu-box:11434/v1")
        assert provider.base_url == "http://gpu-box:11434/v1"

    def test_get_provider_unknown_raises(self):
        with pytest.raises(ValueError, match="Unknown provider"):
            get_provider("nonexistent_provider")

    def test_register_custom_provider(self, stub_provider):
        cls = type(stub_provider("{}"))
        register_provider("scripted", cls)
        assert "scripted" in list_providers()
        assert get_provider("scripted").name == "stub"


# ── Base retry loop ─────────────────────────────────────────────────────


class TestBaseProviderRetry:
    """The shared key-rotation / model-fallback loop."""

    class MultiModel(LLMProvider):
        name = "multi"
        default_model_list = ["m1", "m2"]

        def __init__(self, behaviour, api_keys=None):
            super().__init__(api_keys or ["k1"])
            self.behaviour = behaviour
            self.calls: list[tuple[str, str]] = []

        def _resolve_env_keys(self):
            return []

        def _call_model(self, *, key, model, **kwargs):
            self.calls.append((key, model))
            outcome = self.behaviour(key, model, len(self.calls))
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

    def test_success_first_model(self):
        p = self.MultiModel(lambda k, m, n: '{"ok": true}')
        assert p.generate(system="s", prompt="p") == ('{"ok": true}', "m1")

    def test_fallback_to_second_model(self):
        p = self.MultiModel(lambda k, m, n: _SkipModelError("429") if m == "m1" else "{}")
        assert p.generate(system="s", prompt="p") == ("{}", "m2")

    def test_permanent_model_excluded(self):
        def behaviour(key, model, n):
            if model == "m1":
                return _PermanentModelError("404")
            return _SkipModelError("busy") if n < 3 else "{}"

        p = self.MultiModel(behaviour)
        text, model = p.generate(system="s", prompt="p")
        assert model == "m2"
        assert p.calls.count(("k1", "m1")) == 1

    def test_unexpected_error_skips_model(self):
        p = self.MultiModel(lambda k, m, n: RuntimeError("boom") if m == "m1" else "{}")
        assert p.generate(system="s", prompt="p")[1] == "m2"

    def test_empty_response_skipped(self):
        p = self.MultiModel(lambda k, m, n: "   " if m == "m1" else "{}")
        assert p.generate(system="s", prompt="p")[1] == "m2"

    def test_all_models_fail_raises(self):
        p = self.MultiModel(lambda k, m, n: _SkipModelError("nope"))
        with pytest.raises(ValueError, match="All keys exhausted"):
            p.generate(system="s", prompt="p")
        # two models x AI_RETRY_CYCLES=2
        assert len(p.calls) == 4

    def test_abort_all_moves_to_next_key(self):
        p = self.MultiModel(
            lambda k, m, n: _AbortAllError("bad key") if k == "k1" else "{}",
            api_keys=["k1", "k2"],
        )
        assert p.generate(system="s", prompt="p") == ("{}", "m1")
        assert p.calls == [("k1", "m1"), ("k2", "m1")]

    def test_cancel_check_aborts(self):
        p = self.MultiModel(lambda k, m, n: "{}")
        with pytest.raises(ValueError, match="cancelled"):
            p.generate(system="s", prompt="p", cancel_check=lambda: True)
        assert p.calls == []

    def test_no_models_raises(self):
        class NoModels(self.MultiModel):
            default_model_list = []

        with pytest.raises(ValueError, match="No models"):
            NoModels(lambda k, m, n: "{}").generate(system="s", prompt="p")

    def test_no_keys_raises(self):
        p = self.MultiModel(lambda k, m, n: "{}")
        p.api_keys = []
        with pytest.raises(ValueError, match="No API keys"):
            p.generate(system="s", prompt="p")


# ── Gemini ──────────────────────────────────────────────────────────────


class TestGeminiProvider:
    def test_resolve_env_keys(self, monkeypatch):
        from planforge.config import get_settings

        assert GeminiProvider()._resolve_env_keys() == []
        monkeypatch.setenv("GOOGLE_API_KEY", "my-api-key")
        get_settings.cache_clear()
        assert GeminiProvider()._resolve_env_keys() == ["my-api-key"]

    def test_call_model_json_mode(self):
        with patch("planforge.providers.gemini.genai.Client") as client_cls:
            client_cls.return_value.models.generate_content.return_value.text = '{"title": "X"}'
            text = GeminiProvider(api_keys=["k"])._call_model(
                key="k", model="gemini-x", system="sys", prompt="p", response_format_json=True, temperature=0.1
            )
        assert text == '{"title": "X"}'
        config = client_cls.return_value.models.generate_content.call_args.kwargs["config"]
        assert config.response_mime_type == "application/json"

    def test_sdk_error_classified(self):
        with patch("planforge.providers.gemini.genai.Client") as client_cls:
            client_cls.return_value.models.generate_content.side_effect = Exception("NOT_FOUND 404")
            with pytest.raises(_PermanentModelError):
                GeminiProvider()._call_model(
                    key="k", model="gone", system="", prompt="p", response_format_json=True, temperature=0.1
                )


class TestGeminiErrorClassification:
    @pytest.mark.parametrize(
        "message, expected",
        [
            ("RESOURCE_EXHAUSTED 429", _SkipModelError),
            ("RESOURCE_EXHAUSTED limit: 0", _PermanentModelError),
            ("NOT_FOUND 404", _PermanentModelError),
            ("INVALID_ARGUMENT API key not valid", _AbortAllError),
            ("something else", _SkipModelError),
        ],
    )
    def test_mapping(self, message, expected):
        assert isinstance(classify_gemini_error(Exception(message), "m"), expected)


# ── Ollama ──────────────────────────────────────────────────────────────


class TestOllamaProvider:
    def test_base_url_from_settings(self):
        assert OllamaProvider().base_url == "http://localhost:11444/v1"

    def test_key_slot_is_base_url(self):
        assert OllamaProvider()._resolve_env_keys() == ["http://localhost:11444/v1"]

    def test_min_retry_delay_is_local(self):
        assert OllamaProvider()._min_retry_delay() == 0

    def test_call_model_uses_openai_client(self):
        resp = MagicMock()
        resp.choices[0].message.content = '{"a": 1}'
        with patch("planforge.providers.ollama.OpenAI") as client_cls:
            client_cls.return_value.chat.completions.create.return_value = resp
            text = OllamaProvider()._call_model(
                key="http://localhost:11444/v1",
                model="qwen2.5:14b",
                system="sys",
                prompt="p",
                response_format_json=True,
                temperature=0.2,
            )
        assert text == '{"a": 1}'
        assert client_cls.call_args.kwargs["api_key"] == "test-key"
        kwargs = client_cls.return_value.chat.completions.create.call_args.kwargs
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["messages"][0] == {"role": "system", "content": "sys"}

    @pytest.mark.parametrize(
        "message, expected",
        [
            ("Connection refused", _AbortAllError),
            ("model 'x' not found", _PermanentModelError),
            ("429 too many requests", _SkipModelError),
            ("weird", _SkipModelError),
        ],
    )
    def test_error_mapping(self, message, expected):
        assert isinstance(classify_ollama_error(Exception(message), "m"), expected)
