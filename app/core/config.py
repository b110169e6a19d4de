"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file

Every concern gets its own settings class with an env prefix, and the
``Settings`` container composes them.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Map environments to their respective .env files (relative to PROJECT_ROOT)
ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


def parse_csv(value: str | None) -> list[str]:
    """Split a comma-separated setting into trimmed, non-empty items.

    Examples:
        >>> parse_csv("GET, POST ,")
        ['GET', 'POST']
        >>> parse_csv(None)
        []
    """
    if not value:
        return []

    return [item.strip() for item in value.split(",") if item.strip()]


class ServerSettings(BaseSettings):
    """HTTP server configuration."""

    host: str = Field("localhost", description="Interface the server binds to")
    port: int = Field(8080, description="TCP port the server listens on")
    environment: str = Field(
        "development",
        description="Deployment environment name reported by health endpoints",
    )
    read_timeout: int = Field(30, description="Keep-alive timeout in seconds")
    write_timeout: int = Field(30, description="Reserved; kept for parity with deployments")
    request_timeout_seconds: float = Field(
        60.0,
        description="Maximum time a request may spend in the handler chain",
        gt=0,
    )
    shutdown_timeout_seconds: int = Field(
        30,
        description="Grace period for in-flight requests on shutdown",
        ge=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="SERVER_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("info", description="Root log level")
    format: str = Field("json", description="Output format: json or plain")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to receive and propagate request ids",
    )
    file_enabled: bool = Field(False, description="Also write logs to a rotating file")
    directory: str = Field("./logs", description="Directory for the rotating log file")
    max_size_mb: int = Field(100, description="Rotate the log file after this many MB", ge=0)
    max_backups: int = Field(5, description="Number of rotated files to keep", ge=0)

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class CORSSettings(BaseSettings):
    """Cross-origin resource sharing configuration.

    List-valued fields are comma-separated strings; see ``parse_csv``.
    """

    allowed_origins: str = Field(
        "http://localhost:3000,http://localhost:8080",
        description="Exact origins or *.domain patterns allowed to call the API",
    )
    allowed_methods: str = Field("GET,POST,PUT,DELETE,OPTIONS")
    allowed_headers: str = Field("Content-Type,Authorization")
    exposed_headers: str = Field(
        "X-Request-ID,X-RateLimit-Limit,X-RateLimit-Remaining,X-RateLimit-Reset,"
        "X-RateLimit-Window,Retry-After",
    )
    allow_credentials: bool = Field(False)
    max_age: int = Field(0, description="Preflight cache lifetime in seconds", ge=0)

    model_config = SettingsConfigDict(
        env_prefix="CORS_",
        case_sensitive=False,
    )


class RateLimitSettings(BaseSettings):
    """Per-client rate limiting configuration.

    The window is fixed at one minute; only the capacity is configurable.
    """

    enabled: bool = Field(True, description="Enable per-client rate limiting")
    requests_per_minute: int = Field(
        100,
        description="Maximum admitted requests per client in any trailing minute",
        ge=1,
    )

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        case_sensitive=False,
    )


class AuthSettings(BaseSettings):
    """Authentication placeholders (no auth flow is wired yet)."""

    jwt_secret: str | None = Field(None, description="Secret used to sign JWTs")
    jwt_expiration: int = Field(3600, description="JWT lifetime in seconds")

    model_config = SettingsConfigDict(
        env_prefix="AUTH_",
        case_sensitive=False,
    )


class DatabaseSettings(BaseSettings):
    """Database connection settings, provisioned but not queried."""

    host: str = "localhost"
    port: int = 5432
    user: str | None = None
    password: str | None = None
    name: str | None = None
    sslmode: str = "disable"

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        case_sensitive=False,
    )


class RedisSettings(BaseSettings):
    """Redis connection settings, provisioned but not queried."""

    host: str = "localhost"
    port: int = 6379
    password: str | None = None

    model_config = SettingsConfigDict(
        env_prefix="REDIS_",
        case_sensitive=False,
    )


class DocsSettings(BaseSettings):
    """Interactive API documentation settings."""

    enabled: bool = Field(True, description="Serve interactive docs and the OpenAPI schema")
    route: str = Field("/docs", description="Path of the interactive docs page")
    title: str = Field("Clean API")
    description: str = Field(
        "HTTP API scaffold with health checks, structured logging and "
        "per-client rate limiting.",
    )
    version: str = Field("1.0.0")

    model_config = SettingsConfigDict(
        env_prefix="DOCS_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Raises validation errors on startup if a setting is malformed.
    """

    app_env: str = APP_ENV
    server: ServerSettings = Field(default_factory=ServerSettings)
    log: LogSettings = Field(default_factory=LogSettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    docs: DocsSettings = Field(default_factory=DocsSettings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


# Global settings instance - composed from domain-specific settings
# Nested settings are created via default_factory so env loading works.
settings = Settings()
