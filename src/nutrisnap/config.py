"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    remote_analysis_url: str = "http://localhost:3001"
    meal_api_url: str | None = None
    openai_api_key: str | None = None
    openai_model: str = "gpt-5.2"
    openai_reasoning_effort: str | None = "low"
    openai_store: bool = False
    remote_image_timeout_seconds: float = 20.0
    remote_text_timeout_seconds: float = 10.0
    local_image_timeout_seconds: float = 15.0
    local_text_timeout_seconds: float = 10.0
    confidence_threshold: float = 40.0
    storage_backend: str = "local"
    local_storage_dir: str = ".nutrisnap"
    supabase_url: str | None = None
    supabase_service_key: str | None = None
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_storage_backend(raw: str) -> str:
    """Normalize the configured storage backend name."""
    cleaned = raw.strip().lower()
    if cleaned in {"", "local", "file"}:
        return "local"
    if cleaned in {"memory", "remote", "supabase"}:
        return cleaned
    raise ValueError(f"Unknown storage backend: {raw!r}")
