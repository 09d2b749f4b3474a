"""Centralised application configuration using pydantic-settings.

All environment variables, defaults, and validation live here.
Usage:
    from planforge.config import get_settings
    print(get_settings().repair_max_attempts)
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_KNOWN_PROVIDERS = {"gemini", "ollama"}


class AppConfig(BaseSettings):
    """Single source of truth for every tuneable parameter."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # silently ignore unknown env vars
        case_sensitive=False,
    )

    # ── Repair pipeline ─────────────────────────────────────────────────
    repair_max_attempts: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Upper bound on targeted edits made by the error-driven repair loop",
    )
    repair_max_rule_passes: int = Field(
        default=5,
        ge=1,
        le=20,
        description="Passes over the pattern rule table before giving up on a fixed point",
    )
    strict_mode: bool = Field(
        default=False,
        description="Raise instead of returning placeholder objects at call sites that opt in",
    )
    min_core_features: int = Field(default=1, ge=0, description="Plausibility threshold for strict mode")

    # ── Completion provider selection ───────────────────────────────────
    default_provider: str = Field(default="gemini", description="Completion provider: 'gemini' or 'ollama'")

    # ── Google Gemini ───────────────────────────────────────────────────
    google_api_key: str = Field(default="", description="Google Gemini API key")

    # ── Ollama (local) ──────────────────────────────────────────────────
    ollama_base_url: str = Field(
        default="http://localhost:11434/v1",
        description="Ollama OpenAI-compatible endpoint",
    )
    ollama_api_key: str = Field(default="ollama", description="Ollama API key (any string, dummy auth)")
    ollama_timeout: float = Field(default=600.0, description="Timeout in seconds for a single Ollama request")

    # ── Generation parameters ───────────────────────────────────────────
    ai_retry_cycles: int = Field(default=3, ge=1, le=50)
    default_temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    min_retry_delay_remote: float = Field(default=15.0, description="Seconds between retries for cloud APIs")
    min_retry_delay_local: float = Field(default=1.0, description="Seconds between retries for local LLMs")

    # ── Caller-side timeout race (seconds) ──────────────────────────────
    timeout_project_structure: float = Field(default=120.0, gt=0)
    timeout_sprint_plan: float = Field(default=300.0, gt=0)
    timeout_cost_estimation: float = Field(default=120.0, gt=0)
    timeout_documentation: float = Field(default=120.0, gt=0)

    # ── Concurrency ─────────────────────────────────────────────────────
    max_workers: int = Field(default=4, ge=1, le=64)

    # ── Logging ─────────────────────────────────────────────────────────
    log_file: str = Field(default="planforge.log")
    log_max_bytes: int = Field(default=5 * 1024 * 1024)  # 5 MB
    log_backup_count: int = Field(default=3)
    log_json: bool = Field(default=True)

    # ── Validators ──────────────────────────────────────────────────────
    @field_validator("default_provider")
    @classmethod
    def _validate_provider(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in _KNOWN_PROVIDERS:
            raise ValueError(f"default_provider must be one of {_KNOWN_PROVIDERS}, got '{v}'")
        return v

    @field_validator("ollama_base_url")
    @classmethod
    def _validate_ollama_url(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"ollama_base_url must start with http(s)://, got '{v}'")
        return v

    # ── Helper: per-schema generation timeout ───────────────────────────
    def timeout_for(self, kind: str) -> float:
        """Return the completion timeout for a schema kind (``SchemaKind`` value)."""
        timeouts = {
            "project_structure": self.timeout_project_structure,
            "sprint_plan": self.timeout_sprint_plan,
            "cost_estimation": self.timeout_cost_estimation,
            "documentation": self.timeout_documentation,
        }
        try:
            return timeouts[getattr(kind, "value", kind)]
        except KeyError:
            raise ValueError(f"No timeout configured for schema kind '{kind}'") from None


@lru_cache(maxsize=1)
def get_settings() -> AppConfig:
    """Return the cached singleton settings instance."""
    return AppConfig()
