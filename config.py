"""
config.py
=========
Runtime settings, read from the environment (and a local .env if present).

  RESCORING_API_URL          base URL of the re-scoring service
  RESCORING_TIMEOUT_SECONDS  per-request timeout (single attempt, no retry)
  RESCORING_ENABLED          "false" forces the local feedback model
  OPENAI_API_KEY             enables remote moderation of analyst feedback
  AUDIT_LOG_DIR              where per-run audit JSON files are written
  LOG_LEVEL                  root logging level for the CLI
"""

from __future__ import annotations
from typing import Any, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_TIMEOUT_SECONDS = 10.0


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # ── Re-scoring service ───────────────────────────────────────
    rescoring_api_url: str = "http://localhost:5002/api"
    rescoring_timeout: float = Field(
        default=DEFAULT_TIMEOUT_SECONDS,
        validation_alias=AliasChoices("rescoring_timeout", "rescoring_timeout_seconds"),
    )
    rescoring_enabled: bool = True

    # ── Moderation ───────────────────────────────────────────────
    openai_api_key: Optional[str] = None

    # ── Output ───────────────────────────────────────────────────
    audit_log_dir: str = "logs"
    log_level: str = "INFO"

    @field_validator("rescoring_timeout", mode="before")
    @classmethod
    def parse_timeout(cls, v: Any) -> float:
        # An unparseable timeout keeps the default rather than failing startup.
        try:
            return float(v) if v not in (None, "") else DEFAULT_TIMEOUT_SECONDS
        except (TypeError, ValueError):
            return DEFAULT_TIMEOUT_SECONDS

    @field_validator("rescoring_enabled", mode="before")
    @classmethod
    def parse_enabled(cls, v: Any) -> bool:
        if isinstance(v, bool):
            return v
        text = str(v or "").strip().lower()
        if not text:
            return True
        return text in {"1", "true", "yes", "on"}

    @field_validator("openai_api_key", mode="before")
    @classmethod
    def blank_key_is_none(cls, v: Any) -> Optional[str]:
        return v or None

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_level(cls, v: Any) -> str:
        return str(v or "INFO").upper()

    @classmethod
    def from_env(cls) -> "Settings":
        return cls()


def get_settings() -> Settings:
    return Settings.from_env()
