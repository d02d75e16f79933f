"""Application settings using pydantic-settings.

Settings are loaded from environment variables with sensible defaults
for development. Production deployments should set all values explicitly.

Each deployment environment (development, feature, staging, production)
may ship its own ``.env.<environment>`` file; values there override the
shared ``.env`` file, and real environment variables override both.
"""

import os
from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["development", "feature", "staging", "production"]

# Later files take priority over earlier ones
ENV_FILES = (".env", f".env.{os.environ.get('TODOS_ENVIRONMENT', 'development')}")


class DatabaseSettings(BaseSettings):
    """Database server settings shared by the registry and every tenant store.

    Environment variables:
        TODOS_DB_HOST: Database host (default: localhost)
        TODOS_DB_PORT: Database port (default: 5432)
        TODOS_DB_USERNAME: Database user (default: todos)
        TODOS_DB_PASSWORD: Database password (required in production)
        TODOS_DB_REGISTRY_DATABASE: Central user registry database (default: todos_users)
        TODOS_DB_ADMIN_DATABASE: Maintenance database used for catalog probes
            and CREATE/DROP DATABASE (default: postgres)
        TODOS_DB_REGISTRY_POOL_MAX_CONNECTIONS: Registry pool size (default: 5)
        TODOS_DB_ADMIN_POOL_MAX_CONNECTIONS: Admin pool size (default: 2)
        TODOS_DB_TENANT_POOL_MAX_CONNECTIONS: Per-tenant pool ceiling (default: 5)
    """

    model_config = SettingsConfigDict(
        env_prefix="TODOS_DB_",
        env_file=ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    username: str = Field(default="todos", description="Database username")
    password: SecretStr = Field(
        default=SecretStr(""),
        description="Database password",
    )
    registry_database: str = Field(
        default="todos_users",
        description="Name of the central user registry database",
    )
    admin_database: str = Field(
        default="postgres",
        description="Maintenance database for catalog probes and store DDL",
    )
    registry_pool_max_connections: int = Field(
        default=5,
        description="Maximum connections in the registry pool",
        ge=1,
        le=100,
    )
    admin_pool_max_connections: int = Field(
        default=2,
        description="Maximum connections in the admin (DDL) pool",
        ge=1,
        le=20,
    )
    tenant_pool_max_connections: int = Field(
        default=5,
        description="Maximum concurrent connections per tenant store pool",
        ge=1,
        le=20,
    )

    @model_validator(mode="after")
    def validate_database_names(self) -> "DatabaseSettings":
        """Validate the registry and admin databases are distinct."""
        if self.registry_database == self.admin_database:
            raise ValueError(
                f"registry_database ({self.registry_database}) must differ from "
                f"admin_database ({self.admin_database})"
            )
        return self

    @property
    def connection_string(self) -> str:
        """Generate a connection string (without password for logging)."""
        return (
            f"postgresql://{self.username}@{self.host}:{self.port}/"
            f"{self.registry_database}"
        )


class SessionSettings(BaseSettings):
    """Session credential (cookie) transport settings.

    Environment variables:
        TODOS_SESSION_USER_COOKIE_NAME: Cookie carrying the user id (default: userId)
        TODOS_SESSION_GUEST_COOKIE_NAME: Cookie carrying the guest token (default: guestId)
        TODOS_SESSION_COOKIE_DOMAIN: Cookie domain, unset for localhost
        TODOS_SESSION_COOKIE_SECURE: Send cookies over HTTPS only (default: false)
        TODOS_SESSION_COOKIE_MAX_AGE_SECONDS: Cookie lifetime (default: 7 days)
        TODOS_SESSION_COOKIE_SAMESITE: SameSite attribute, only sent when secure
        TODOS_SESSION_COOKIE_HTTPONLY: Hide cookies from scripts (default: false)
    """

    model_config = SettingsConfigDict(
        env_prefix="TODOS_SESSION_",
        env_file=ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    user_cookie_name: str = Field(default="userId", min_length=1)
    guest_cookie_name: str = Field(default="guestId", min_length=1)
    cookie_domain: str | None = Field(default=None)
    cookie_secure: bool = Field(default=False)
    cookie_max_age_seconds: int = Field(default=7 * 24 * 60 * 60, ge=60)
    cookie_samesite: Literal["lax", "strict", "none"] = Field(default="lax")
    cookie_httponly: bool = Field(default=False)

    @model_validator(mode="after")
    def validate_cookie_names(self) -> "SessionSettings":
        """Validate the user and guest cookies do not share a name."""
        if self.user_cookie_name == self.guest_cookie_name:
            raise ValueError("user_cookie_name and guest_cookie_name must differ")
        return self


class TenancySettings(BaseSettings):
    """Tenant store provisioning and pool lifecycle settings.

    Environment variables:
        TODOS_TENANCY_PROVISIONING_TIMEOUT_SECONDS: Upper bound for store
            creation, schema creation and catalog probes (default: 10)
        TODOS_TENANCY_POOL_IDLE_TIMEOUT_SECONDS: Close pools unused for this
            long; 0 disables the idle reaper (default: 1800)
        TODOS_TENANCY_REAPER_INTERVAL_SECONDS: Sweep interval (default: 60)
    """

    model_config = SettingsConfigDict(
        env_prefix="TODOS_TENANCY_",
        env_file=ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    provisioning_timeout_seconds: float = Field(default=10.0, gt=0)
    pool_idle_timeout_seconds: float = Field(default=1800.0, ge=0)
    reaper_interval_seconds: float = Field(default=60.0, gt=0)

    @property
    def reaper_enabled(self) -> bool:
        """Whether idle pools should be swept at all."""
        return self.pool_idle_timeout_seconds > 0


class Settings(BaseSettings):
    """Main application settings aggregating all configuration sections."""

    model_config = SettingsConfigDict(
        env_prefix="TODOS_",
        env_file=ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application metadata
    app_name: str = Field(default="Todos API", description="Application name")
    environment: Environment = Field(default="development")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: Literal["debug", "info", "warning", "error"] = Field(default="info")
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000", "http://localhost:5500"],
        description="Origins allowed to send credentialed requests",
    )

    @property
    def database(self) -> DatabaseSettings:
        """Get database settings."""
        return get_database_settings()

    @property
    def session(self) -> SessionSettings:
        """Get session cookie settings."""
        return get_session_settings()

    @property
    def tenancy(self) -> TenancySettings:
        """Get tenancy settings."""
        return get_tenancy_settings()


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


@lru_cache
def get_database_settings() -> DatabaseSettings:
    """Get cached database settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return DatabaseSettings()


@lru_cache
def get_session_settings() -> SessionSettings:
    """Get cached session cookie settings."""
    return SessionSettings()


@lru_cache
def get_tenancy_settings() -> TenancySettings:
    """Get cached tenancy settings."""
    return TenancySettings()
