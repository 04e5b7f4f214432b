"""
Configuration and settings for the auth proxy.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # "" serves /auth/login, "/api" serves /api/auth/login.
    api_prefix: str = Field(default="")
    environment: str = Field(default="development")

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3000)
    log_level: str = Field(default="INFO")

    # HighLevel contacts API
    highlevel_base_url: str = Field(default="https://rest.gohighlevel.com/v1")
    api_access_token: Optional[str] = Field(default=None)
    upstream_timeout_seconds: float = Field(default=30.0)

    # Custom field ids on the HighLevel contact
    field_password: str = Field(default="custom_field_id_for_password")
    field_subscription_tier: str = Field(
        default="custom_field_id_for_subscription_tier"
    )
    field_research_data: str = Field(default="custom_field_id_for_research_data")
    field_last_research_date: str = Field(
        default="custom_field_id_for_last_research_date"
    )

    # CORS
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    cors_origin_regex: Optional[str] = Field(default=None)

    # Rate limiting (slowapi limit string)
    rate_limit: str = Field(default="100/15 minutes")
    rate_limit_enabled: bool = Field(default=True)

    # Compare the submitted password with the stored one on login. Off by
    # default: the extension logs in existing contacts without it.
    enforce_login_password: bool = Field(default=False)

    # Development toggles
    use_in_memory_backends: bool = Field(default=False)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
