"""Application settings using pydantic-settings.

Settings are loaded from environment variables with sensible defaults
for development. Production deployments should set all values explicitly,
in particular ``CLINIC_AUTH_SECRET_KEY``.

The application factory reads these once at startup and passes them to the
components it builds; nothing below the factory calls the getters.
"""

from datetime import timedelta
from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

StorageBackend = Literal["memory", "postgres"]

# Signing secret for local in-memory runs; refused with the postgres backend
DEVELOPMENT_SECRET_KEY = "dev-only-secret-change-me-0123456789abcdef"


class DatabaseSettings(BaseSettings):
    """Database connection settings.

    Environment variables:
        CLINIC_DB_HOST: Database host (default: localhost)
        CLINIC_DB_PORT: Database port (default: 5432)
        CLINIC_DB_DATABASE: Database name (default: clinic)
        CLINIC_DB_USERNAME: Database user (default: clinic)
        CLINIC_DB_PASSWORD: Database password (required in production)
        CLINIC_DB_POOL_MIN_CONNECTIONS: Minimum connections in pool (default: 2)
        CLINIC_DB_POOL_MAX_CONNECTIONS: Maximum connections in pool (default: 10)
        CLINIC_DB_CREATE_SCHEMA: Create missing tables at startup (default: false)
        CLINIC_DB_ECHO: Log SQL statements (default: false)
        CLINIC_DB_APPLICATION_NAME: Name reported to PostgreSQL (default: clinic-api)
    """

    model_config = SettingsConfigDict(
        env_prefix="CLINIC_DB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    database: str = Field(default="clinic", description="Database name")
    username: str = Field(default="clinic", description="Database username")
    password: SecretStr = Field(
        default=SecretStr(""),
        description="Database password",
    )
    pool_min_connections: int = Field(
        default=2,
        description="Minimum connections in pool",
        ge=1,
        le=100,
    )
    pool_max_connections: int = Field(
        default=10,
        description="Maximum connections in pool",
        ge=1,
        le=100,
    )
    create_schema: bool = Field(
        default=False,
        description="Create missing tables at startup",
    )
    echo: bool = Field(default=False, description="Log SQL statements")
    application_name: str = Field(
        default="clinic-api",
        description="application_name reported in pg_stat_activity",
    )

    @model_validator(mode="after")
    def validate_pool_settings(self) -> "DatabaseSettings":
        """Validate pool max >= min."""
        if self.pool_max_connections < self.pool_min_connections:
            raise ValueError(
                f"pool_max_connections ({self.pool_max_connections}) must be >= "
                f"pool_min_connections ({self.pool_min_connections})"
            )
        return self

    @property
    def connection_string(self) -> str:
        """Generate a connection string (without password for logging)."""
        return f"postgresql://{self.username}@{self.host}:{self.port}/{self.database}"


class AuthSettings(BaseSettings):
    """Credential issuing and validation settings.

    Environment variables:
        CLINIC_AUTH_SECRET_KEY: HMAC signing secret, at least 32 characters;
            required with the postgres storage backend
        CLINIC_AUTH_ALGORITHM: Signing algorithm (default: HS256)
        CLINIC_AUTH_ACCESS_TOKEN_TTL_SECONDS: Access credential lifetime (default: 3600)
        CLINIC_AUTH_REFRESH_TOKEN_TTL_SECONDS: Refresh token lifetime (default: 7 days)
        CLINIC_AUTH_REFRESH_BUFFER_SECONDS: Client refresh safety buffer (default: 60)
        CLINIC_AUTH_ISSUER: Optional ``iss`` claim
        CLINIC_AUTH_BOOTSTRAP_ADMIN_EMAIL: Admin account created at startup, if set
        CLINIC_AUTH_BOOTSTRAP_ADMIN_PASSWORD: Password for the bootstrap admin
        CLINIC_AUTH_BOOTSTRAP_ADMIN_TENANT_ID: Clinic of the bootstrap admin
    """

    model_config = SettingsConfigDict(
        env_prefix="CLINIC_AUTH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    secret_key: SecretStr = Field(
        default=SecretStr(DEVELOPMENT_SECRET_KEY),
        description="HMAC signing secret",
    )
    algorithm: Literal["HS256", "HS384", "HS512"] = Field(
        default="HS256",
        description="Credential signing algorithm",
    )
    access_token_ttl_seconds: int = Field(
        default=3600,
        description="Access credential lifetime in seconds",
        ge=1,
    )
    refresh_token_ttl_seconds: int = Field(
        default=7 * 24 * 3600,
        description="Refresh token lifetime in seconds",
        ge=1,
    )
    refresh_buffer_seconds: int = Field(
        default=60,
        description="Seconds before expiry at which clients refresh",
        ge=0,
    )
    issuer: str | None = Field(default=None, description="Credential issuer claim")
    bootstrap_admin_email: str | None = Field(
        default=None,
        description="Admin account created at startup",
    )
    bootstrap_admin_password: SecretStr | None = Field(
        default=None,
        description="Password of the bootstrap admin",
    )
    bootstrap_admin_tenant_id: str | None = Field(
        default=None,
        description="Clinic the bootstrap admin belongs to",
    )

    @field_validator("secret_key")
    @classmethod
    def validate_secret_key(cls, value: SecretStr) -> SecretStr:
        """Reject short signing secrets."""
        if len(value.get_secret_value()) < 32:
            raise ValueError("secret_key must be at least 32 characters")
        return value

    @model_validator(mode="after")
    def validate_bootstrap_admin(self) -> "AuthSettings":
        """Require a password when a bootstrap admin is configured."""
        if self.bootstrap_admin_email and self.bootstrap_admin_password is None:
            raise ValueError(
                "bootstrap_admin_password is required when "
                "bootstrap_admin_email is set"
            )
        return self

    @property
    def uses_development_secret(self) -> bool:
        return self.secret_key.get_secret_value() == DEVELOPMENT_SECRET_KEY

    @property
    def access_token_ttl(self) -> timedelta:
        return timedelta(seconds=self.access_token_ttl_seconds)

    @property
    def refresh_token_ttl(self) -> timedelta:
        return timedelta(seconds=self.refresh_token_ttl_seconds)

    @property
    def refresh_buffer(self) -> timedelta:
        return timedelta(seconds=self.refresh_buffer_seconds)


class TenancySettings(BaseSettings):
    """Tenant resolution settings.

    Environment variables:
        CLINIC_TENANCY_HEADER_NAME: Tenant header (default: x-clinic-id)
        CLINIC_TENANCY_SINGLE_TENANT_MODE: Fall back to the default tenant when
            a request carries none (default: false)
        CLINIC_TENANCY_DEFAULT_TENANT_ID: Tenant used in single-tenant mode
    """

    model_config = SettingsConfigDict(
        env_prefix="CLINIC_TENANCY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    header_name: str = Field(
        default="x-clinic-id",
        description="Request header carrying the clinic identifier",
        min_length=1,
    )
    single_tenant_mode: bool = Field(
        default=False,
        description="Fall back to default_tenant_id when no tenant is sent",
    )
    default_tenant_id: str | None = Field(
        default=None,
        description="Clinic used in single-tenant mode",
    )

    @field_validator("header_name")
    @classmethod
    def normalize_header_name(cls, value: str) -> str:
        """Header names are compared lowercase."""
        return value.strip().lower()

    @model_validator(mode="after")
    def validate_single_tenant_mode(self) -> "TenancySettings":
        """Single-tenant mode needs a non-blank default tenant."""
        if self.single_tenant_mode and not (
            self.default_tenant_id and self.default_tenant_id.strip()
        ):
            raise ValueError(
                "default_tenant_id is required when single_tenant_mode is enabled"
            )
        return self


class Settings(BaseSettings):
    """Main application settings.

    Environment variables:
        CLINIC_APP_NAME: Application name (default: Clinic API)
        CLINIC_DEBUG: Debug mode (default: false)
        CLINIC_LOG_LEVEL: Minimum log level (default: INFO)
        CLINIC_STORAGE_BACKEND: ``memory`` or ``postgres`` (default: memory)
    """

    model_config = SettingsConfigDict(
        env_prefix="CLINIC_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application metadata
    app_name: str = Field(default="Clinic API", description="Application name")
    debug: bool = Field(default=False, description="Debug mode")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Minimum log level",
    )
    storage_backend: StorageBackend = Field(
        default="memory",
        description="Where tenant-scoped records are stored",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: object) -> object:
        if isinstance(value, str):
            return value.upper()
        return value


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
def get_auth_settings() -> AuthSettings:
    """Get cached auth settings."""
    return AuthSettings()


@lru_cache
def get_tenancy_settings() -> TenancySettings:
    """Get cached tenancy settings."""
    return TenancySettings()
