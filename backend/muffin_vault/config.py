"""
Muffin Vault Backend — Application Configuration
=================================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads environment variables (or a .env file),
       coerces types, checks ranges and exposes a singleton `settings`.
When:  Loaded once at import time; `validate_required()` runs in the
       application lifespan before the database engine is created.

The two connection parameters (DATABASE_URL, DATABASE_KEY) have empty
defaults so that importing the package never fails; a server started
without them refuses to come up instead of failing on the first request.
"""

from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings
from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError

from muffin_vault.exceptions import ConfigurationError


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes are grouped by concern for readability.
    """

    # ── Database ──────────────────────────────────────────────────────────
    # What: Endpoint of the hosted PostgreSQL instance, async driver
    # Format: postgresql+asyncpg://user@host:port/dbname
    database_url: str = Field(
        default="",
        description="Async PostgreSQL connection URL (without the password)",
    )

    # What: Access key for the database, used as the connection password
    database_key: str = Field(
        default="",
        description="Database access key",
    )

    db_pool_size: int = Field(default=10, ge=5, le=100)
    db_max_overflow: int = Field(default=5, ge=0, le=50)
    db_pool_pre_ping: bool = Field(default=True)

    # ── CORS ──────────────────────────────────────────────────────────────
    # Format: Comma-separated URLs
    cors_origins: str = Field(default="http://localhost:3001")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ── Static Front-End ──────────────────────────────────────────────────
    # What: Directory holding the prebuilt front-end served at "/"
    static_dir: str = Field(default="./public")

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=3001, ge=1024, le=65535)

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
        "extra": "ignore",
    }

    def validate_required(self) -> None:
        """
        What:  Checks that both connection parameters are configured.
        When:  Called during app startup (lifespan), before the engine exists.
        How:   Collects every problem and raises a single ConfigurationError.
        """
        errors = []
        if not self.database_url:
            errors.append("DATABASE_URL is not set.")
        else:
            try:
                make_url(self.database_url)
            except ArgumentError:
                errors.append("DATABASE_URL is not a valid database URL.")
        if not self.database_key:
            errors.append("DATABASE_KEY is not set.")
        if errors:
            raise ConfigurationError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors),
                context={"missing": errors},
            )

    @property
    def sqlalchemy_url(self) -> URL:
        """
        The connection URL with the access key injected as the password.

        A password already embedded in DATABASE_URL is replaced. SQLite URLs
        (local development, tests) take no password and are returned as-is.
        """
        url = make_url(self.database_url)
        if self.database_key and url.get_backend_name() != "sqlite":
            url = url.set(password=self.database_key)
        return url


# Singleton instance — imported throughout the application
settings = Settings()
