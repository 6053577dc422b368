"""
Application Configuration

Uses Pydantic Settings for type-safe configuration.
"""

from typing import Optional
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator, ConfigDict


class Settings(BaseSettings):
    """Application settings with validation."""

    # === Core ===
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")

    # === Database ===
    database_url: str = Field(
        default="sqlite:///./stravhat.db",
        description="Database connection URL"
    )

    # === Secrets at rest ===
    strava_credentials_encryption_key: Optional[str] = Field(
        default=None,
        description="Base64-encoded 32-byte key for credential/token encryption"
    )

    # === Strava ===
    strava_oauth_url: str = Field(default="https://www.strava.com/oauth/token")
    strava_authorize_url: str = Field(default="https://www.strava.com/oauth/authorize")
    strava_api_url: str = Field(default="https://www.strava.com/api/v3")
    strava_oauth_scope: str = Field(default="read,activity:read_all")
    strava_http_timeout_seconds: float = Field(
        default=20.0,
        gt=0,
        description="Request timeout for provider calls (not the rate-limit backoff)"
    )

    @field_validator('database_url')
    @classmethod
    def fix_postgres_url(cls, v: str) -> str:
        """Fix Render/Railway postgres:// URL to postgresql://"""
        if v.startswith("postgres://"):
            return v.replace("postgres://", "postgresql://", 1)
        return v

    model_config = ConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Global settings instance
settings = Settings()
