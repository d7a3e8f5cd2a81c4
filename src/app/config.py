"""Application configuration using pydantic-settings."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import ValidationError as PydanticValidationError
from pydantic import computed_field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from app.core.constants import (
    DB_NAME_PLACEHOLDER,
    DEFAULT_DB_NAME_PATTERN,
    DEFAULT_RESERVED_SUBDOMAINS,
)
from app.core.errors.exceptions import ConfigurationError


class Settings(BaseSettings):
    """Platform settings loaded from environment variables.

    Built once at process start (see ``load_settings``) and handed to the
    ``Platform`` container, which passes it to every component.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Tenant Platform"
    debug: bool = False
    environment: str = "development"  # development, staging, production
    log_level: str = "INFO"

    # Registry (core) database
    registry_database_url: str
    database_pool_size: int = 10
    database_max_overflow: int = 20
    database_echo: bool = False

    # Tenant databases
    tenant_database_url_template: str
    admin_database_url: str
    tenant_db_name_pattern: str = DEFAULT_DB_NAME_PATTERN
    tenant_pool_size: int = 5
    tenant_max_overflow: int = 5

    # Migrations
    alembic_config: Path = Path("alembic.ini")
    tenant_migrations_section: str = "tenant"

    # Routing
    production_domain: str = "onwindos.com"
    staging_domain: str = "staging.onwindos.com"
    tenant_path_prefix: str = "/tenant"
    reserved_subdomains: str = DEFAULT_RESERVED_SUBDOMAINS
    tenant_cookie_name: str = "tenant-slug"

    # Storage
    storage_type: Literal["local", "s3"] = "local"
    storage_local_path: Path = Path("./storage/tenants")
    storage_public_base_url: str = "/storage"
    storage_s3_bucket: str | None = None
    storage_s3_region: str | None = None
    storage_s3_prefix: str = "tenants"

    # Audit log
    audit_log_enabled: bool = True
    audit_log_retention_days: int = 365

    # Platform super admin, upserted into every tenant database
    super_admin_email: str = "superadmin@omnexcore.com"
    super_admin_username: str = "superadmin"
    super_admin_password: str | None = None

    # Redis (background jobs)
    redis_url: str = "redis://localhost:6379"

    # CORS (comma separated origins)
    cors_origins: str = ""

    # API Documentation
    api_docs_base_url: str = "https://api.example.com"

    @field_validator("tenant_database_url_template")
    @classmethod
    def validate_url_template(cls, v: str) -> str:
        """Ensure the tenant URL template has a database name placeholder."""
        if DB_NAME_PLACEHOLDER not in v:
            raise ValueError(
                f"TENANT_DATABASE_URL_TEMPLATE must contain {DB_NAME_PLACEHOLDER}"
            )
        return v

    @field_validator("tenant_db_name_pattern")
    @classmethod
    def validate_name_pattern(cls, v: str) -> str:
        """Ensure the naming pattern references both slug and year."""
        if "{slug}" not in v or "{year}" not in v:
            raise ValueError("TENANT_DB_NAME_PATTERN must contain {slug} and {year}")
        return v

    @field_validator("tenant_path_prefix")
    @classmethod
    def normalize_path_prefix(cls, v: str) -> str:
        """Normalize the path prefix to a leading slash and no trailing slash."""
        v = "/" + v.strip("/")
        return v

    @model_validator(mode="after")
    def validate_storage(self) -> "Settings":
        """Require a bucket and region when S3 storage is selected."""
        if self.storage_type == "s3" and not (
            self.storage_s3_bucket and self.storage_s3_region
        ):
            raise ValueError(
                "STORAGE_S3_BUCKET and STORAGE_S3_REGION are required when "
                "STORAGE_TYPE is s3"
            )
        return self

    @property
    def reserved_subdomain_set(self) -> frozenset[str]:
        """Reserved subdomain labels that never name a tenant."""
        return frozenset(
            part.strip().lower()
            for part in self.reserved_subdomains.split(",")
            if part.strip()
        )

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"


def load_settings(**overrides: object) -> Settings:
    """Build settings from the environment.

    Args:
        **overrides: Explicit values that take precedence over the environment

    Returns:
        Validated settings

    Raises:
        ConfigurationError: If a required value is missing or invalid
    """
    try:
        return Settings(**overrides)  # type: ignore[arg-type]
    except PydanticValidationError as e:
        errors = [
            {
                "field": ".".join(str(part) for part in err["loc"]) or "settings",
                "message": err["msg"],
            }
            for err in e.errors()
        ]
        fields = ", ".join(error["field"] for error in errors)
        raise ConfigurationError(
            f"Invalid or missing configuration: {fields}",
            details={"errors": errors},
        ) from e


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return load_settings()
