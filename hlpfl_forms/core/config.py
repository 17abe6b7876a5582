"""HLPFL Forms Configuration - Environment-based settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "HLPFL Forms"
    app_version: str = "2.0.0"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["structured", "dev"] = "dev"

    # Server
    server_host: str = "0.0.0.0"
    server_port: int = Field(default=8000, ge=1, le=65535)

    # Token signing - no default, the secret must come from the environment
    jwt_secret_key: str = Field(..., description="HMAC secret for signed bearer tokens")
    jwt_algorithm: str = "HS256"
    token_ttl_seconds: int = Field(default=24 * 60 * 60, ge=1)
    csrf_ttl_seconds: int = Field(default=60 * 60, ge=1)

    # Security policy
    token_scheme: Literal["signed", "opaque"] = "signed"
    enforce_csrf: bool = True
    cors_origin: str = "*"

    # Rate limiting (sliding window)
    rate_limit_window_ms: int = Field(default=60_000, ge=1)
    rate_limit_requests: int = Field(default=100, ge=1)
    rate_limit_auth_attempts: int = Field(default=5, ge=1)
    rate_limit_form_submissions: int = Field(default=10, ge=1)

    # Shared state backend: empty means in-memory
    state_store_url: str = ""
    state_purge_interval_seconds: int = Field(default=300, ge=1)

    @field_validator("jwt_secret_key")
    @classmethod
    def validate_jwt_secret_key(cls, v: str) -> str:
        if len(v) < 32:
            raise ValueError(
                "JWT_SECRET_KEY must be at least 32 characters. "
                'Generate one with: python -c "import secrets; print(secrets.token_hex(32))"'
            )
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()  # type: ignore[call-arg]
