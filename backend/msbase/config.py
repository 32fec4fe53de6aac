"""
msbase — Application Configuration
===================================

What:  Centralized configuration management using Pydantic Settings.
Why:   Type-safe environment variable loading with validation on startup.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by `msbase.main` when wiring the server.
When:  Loaded once at module import time; read-only afterwards.
"""

from pathlib import Path
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

# Translation files shipped with the package (en.json, es.json, ...)
DEFAULT_LOCALES_DIR = str(Path(__file__).resolve().parent / "locales")


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have sensible defaults for development.
    Attributes are grouped by concern for readability.
    """

    # ── Server ────────────────────────────────────────────────────────────
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8080, ge=1, le=65535)

    # What: Common prefix every controller route is mounted under
    # Format: leading slash, no trailing slash (e.g. "/api")
    api_prefix: str = Field(default="/api")

    @field_validator("api_prefix")
    @classmethod
    def normalize_api_prefix(cls, v: str) -> str:
        """Ensures the prefix starts with '/' and never ends with one."""
        v = v.strip().rstrip("/")
        if v and not v.startswith("/"):
            v = "/" + v
        return v

    # ── Request headers ───────────────────────────────────────────────────
    request_id_header: str = Field(default="X-Request-ID")
    language_header: str = Field(default="Accept-Language")

    # ── Localization ──────────────────────────────────────────────────────
    # What: Locale used when the client sends no language preference
    # Empty string disables the default: lookups then fall back to raw keys
    default_locale: str = Field(default="en")

    # What: Comma-separated locales loaded from locales_dir at startup
    locales: str = Field(default="en,es")
    locales_dir: str = Field(default=DEFAULT_LOCALES_DIR)

    @property
    def locales_list(self) -> List[str]:
        """Splits comma-separated locales into a list, skipping blanks."""
        return [lang.strip() for lang in self.locales.split(",") if lang.strip()]

    # ── CORS ──────────────────────────────────────────────────────────────
    cors_origins: str = Field(default="http://localhost:3000")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ── Logging ───────────────────────────────────────────────────────────
    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }


# Singleton instance
settings = Settings()
