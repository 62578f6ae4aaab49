"""Application configuration."""

import os

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    users_table: str = "users"
    randomuser_base_url: str = "https://api.randomuser.me"
    randomuser_nationality: str = "es"
    request_timeout_seconds: float = Field(default=15.0, gt=0)
    min_fetch_interval_seconds: float = Field(default=2.0, ge=0)
    connectivity_probe_url: str | None = None
    default_page_size: int = Field(default=20, ge=1)
    max_retries: int = Field(default=3, ge=0)
    load_threshold: int = Field(default=8, ge=0)
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_nationalities(raw: str | None) -> str | None:
    """Normalize the randomuser nationality filter from env."""
    if raw is None:
        return None
    cleaned = raw.strip()
    if cleaned in {"", "*"}:
        return None
    codes: list[str] = []
    for chunk in cleaned.split(","):
        value = chunk.strip().lower()
        if value.isalpha() and value not in codes:
            codes.append(value)
    return ",".join(codes) or None
