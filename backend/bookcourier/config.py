"""
BookCourier Backend — Application Configuration
=================================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by every module that needs configuration values.
When:  Loaded once at module import time; validated before the app starts.
"""

from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have development defaults. Production deployments must
    override MONGODB_URL, FIREBASE_CREDENTIALS_PATH (or provide application
    default credentials) and CORS_ORIGINS.
    """

    # ── MongoDB ───────────────────────────────────────────────────────────
    mongodb_url: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection string (mongodb:// or mongodb+srv://)",
    )
    mongodb_db_name: str = Field(default="book-courier")

    # Client-side server selection timeout; the driver fails requests after this
    mongodb_timeout_ms: int = Field(default=5000, ge=500, le=60000)

    # ── Firebase Authentication ───────────────────────────────────────────
    # Path to a service-account JSON file. Empty means application default
    # credentials (GOOGLE_APPLICATION_CREDENTIALS or the metadata server).
    firebase_credentials_path: str = Field(default="")
    firebase_project_id: Optional[str] = Field(default=None)

    # Revocation checks cost one extra Firebase call per request
    firebase_check_revoked: bool = Field(default=False)

    # ── Catalogue ─────────────────────────────────────────────────────────
    latest_books_limit: int = Field(default=6, ge=1, le=100)

    # ── CORS ──────────────────────────────────────────────────────────────
    cors_origins: str = Field(default="*")

    @property
    def cors_origins_list(self) -> List[str]:
        """Comma-separated CORS origins as a list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=5000, ge=1024, le=65535)

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

    # ── Identity verification retry ───────────────────────────────────────
    # Applies to transient failures fetching Google's public signing keys only
    identity_retry_max_attempts: int = Field(default=3, ge=1, le=10)
    identity_retry_min_wait: float = Field(default=0.5, ge=0, le=30)
    identity_retry_max_wait: float = Field(default=4, ge=0, le=120)

    # ── Circuit Breaker ───────────────────────────────────────────────────
    cb_failure_threshold: int = Field(default=5, ge=1, le=50)
    cb_recovery_timeout: int = Field(default=30, ge=0, le=600)

    # ── Rate Limiting ─────────────────────────────────────────────────────
    rate_limit_requests: int = Field(default=600, ge=10, le=100000)
    rate_limit_window: int = Field(default=60, ge=1, le=86400)  # seconds

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    def validate_required_for_production(self) -> None:
        """
        Validates that critical settings are configured.

        Called during app startup (lifespan). Raises ValueError listing every
        problem so the operator can fix them in one pass.
        """
        errors = []
        if not self.mongodb_url:
            errors.append("MONGODB_URL is not set.")
        if not self.firebase_credentials_path and not self.firebase_project_id:
            errors.append(
                "Neither FIREBASE_CREDENTIALS_PATH nor FIREBASE_PROJECT_ID is set. "
                "Token verification will rely on application default credentials."
            )
        if errors:
            raise ValueError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )


# Singleton instance, imported throughout the application
settings = Settings()
