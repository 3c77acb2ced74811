"""photo_relay.config

Relay service configuration loaded from environment variables (and optional `.env` file).

TELEGRAM_BOT_TOKEN and TELEGRAM_CHAT_ID have no defaults: the service refuses to start
without them.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Relay settings (NO secrets in code defaults)."""

    # ===== Telegram =====
    TELEGRAM_BOT_TOKEN: SecretStr
    TELEGRAM_CHAT_ID: str
    TELEGRAM_API_BASE: str = Field(default="https://api.telegram.org")
    TELEGRAM_TIMEOUT_SEC: float = Field(default=30.0, ge=0.1, le=300.0)

    # ===== Uploads =====
    # Received files live here only for the duration of one request.
    UPLOAD_DIR: Path = Field(default=Path("uploads"))
    MAX_UPLOAD_BYTES: int = Field(default=20 * 1024 * 1024, ge=1024)

    # ===== API =====
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=10000, ge=1, le=65535)
    LOG_LEVEL: str = Field(default="INFO")
    API_PREFIX: str = Field(default="")
    API_TITLE: str = Field(default="Photo Relay Service")
    API_VERSION: str = Field(default="1.0.0")

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    @field_validator("TELEGRAM_BOT_TOKEN")
    @classmethod
    def _token_not_blank(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value().strip():
            raise ValueError("TELEGRAM_BOT_TOKEN must be set")
        return v

    @field_validator("TELEGRAM_CHAT_ID")
    @classmethod
    def _chat_id_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("TELEGRAM_CHAT_ID must be set")
        return v.strip()

    @property
    def upload_root(self) -> Path:
        return self.UPLOAD_DIR.expanduser().resolve()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
