"""Centralized application configuration via Pydantic Settings.

Loads all env vars (and ``.env``) into a typed Settings instance. Routes
receive it through the ``get_settings`` dependency so tests can override it.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Supabase
    SUPABASE_URL: str = Field(..., description="Supabase project URL")
    SUPABASE_ANON_KEY: str = Field(..., description="Supabase anon/public key")
    SUPABASE_SERVICE_KEY: str = Field(
        default="",
        description="Supabase service-role key (maintenance scripts only)",
    )

    # CORS
    ALLOWED_ORIGINS: str = Field(
        default="http://localhost:3000",
        description="Comma-separated allowed origins for CORS",
    )

    # Logging
    LOG_LEVEL: str = Field(default="INFO", description="Python log level")
    ENVIRONMENT: str = Field(
        default="development",
        description="Runtime environment: development, staging, production",
    )

    # App
    APP_VERSION: str = Field(default="0.1.0", description="Application version")

    # Statement import
    MAX_UPLOAD_BYTES: int = Field(
        default=10 * 1024 * 1024, description="Largest accepted statement upload"
    )
    MIN_EXTRACTED_TEXT_CHARS: int = Field(
        default=50,
        description="PDFs yielding less text than this are treated as image-only",
    )
    RAW_TEXT_PREVIEW_CHARS: int = Field(
        default=500, description="Length of the raw text preview in parse responses"
    )
    KNOWN_MERCHANTS_FILE: str = Field(
        default="",
        description="Optional JSON file replacing the built-in merchant catalogue",
    )

    @property
    def allowed_origins(self) -> list[str]:
        """Parse comma-separated origins into a list."""
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

    @property
    def log_level(self) -> str:
        return self.LOG_LEVEL

    @property
    def json_logs(self) -> bool:
        return self.ENVIRONMENT == "production"

    model_config = {"env_file": ".env", "extra": "ignore"}


@lru_cache
def get_settings() -> Settings:
    """Cached Settings factory; override it in tests via dependency_overrides."""
    return Settings()
