"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

DEFAULT_API_URL = "http://localhost:8000/api"
DEFAULT_API_TIMEOUT_MS = 30000


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    api_backend: str = "http"
    api_url: str = DEFAULT_API_URL
    api_timeout_ms: int = DEFAULT_API_TIMEOUT_MS
    supabase_url: str | None = None
    supabase_anon_key: str | None = None
    session_store_path: str = "~/.surfapp/session.json"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_timeout_seconds(timeout_ms: int | None) -> float:
    """Convert a millisecond timeout from env into seconds for httpx."""
    if timeout_ms is None or timeout_ms <= 0:
        return DEFAULT_API_TIMEOUT_MS / 1000
    return timeout_ms / 1000
