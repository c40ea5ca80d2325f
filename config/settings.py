"""
Runtime settings, read from the environment or a .env file.

Bulk order limits (validation timeout, session TTL, rate limit) live here
so they can be tuned per deployment without a code change.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings. SUPABASE_URL and SUPABASE_KEY are required."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Catalog backend
    supabase_url: str = Field(..., description="Supabase project URL")
    supabase_key: str = Field(..., description="Anon key; pricing RPCs enforce access server-side")

    # Bulk orders
    validation_timeout_seconds: float = Field(
        15.0,
        gt=0,
        le=120,
        description="Seconds one bulk validation round-trip may take"
    )
    bulk_session_ttl_minutes: int = Field(
        30,
        ge=1,
        le=24 * 60,
        description="Idle minutes before a bulk order session is dropped"
    )
    bulk_rate_limit_max_requests: int = Field(
        10,
        ge=1,
        description="Bulk validations allowed per user (or client) per window"
    )
    bulk_rate_limit_window_seconds: int = Field(
        60,
        ge=1,
        le=3600,
        description="Rate limit window length"
    )

    # Server
    environment: str = Field("development", pattern="^(development|staging|production)$")
    debug: bool = False
    log_level: str = Field("INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    api_host: str = "0.0.0.0"
    api_port: int = Field(8000, ge=1, le=65535)
    cors_origins: list[str] = Field(
        default=["http://localhost:5173"],
        description="Browser origins allowed to call the API (JSON list in env)"
    )

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache()
def get_settings() -> Settings:
    """
    Cached settings instance.

    Raises:
        ValidationError: If SUPABASE_URL / SUPABASE_KEY are missing or a
            limit is out of range
    """
    return Settings()


settings = get_settings()
