"""Tenant routing and database lifecycle primitives."""

from app.core.tenancy.naming import (
    current_year,
    tenant_database_name,
    tenant_database_url,
    validate_slug,
    year_from_database_name,
)
from app.core.tenancy.resolver import ResolvedTenant, TenantResolver, TenantSource
from app.core.tenancy.router import ConnectionRouter
from app.core.tenancy.admin import CreateOutcome, DatabaseAdmin, PostgresDatabaseAdmin
from app.core.tenancy.storage import (
    LocalStorage,
    S3Storage,
    StorageBackend,
    create_storage,
)


__all__ = [
    "ConnectionRouter",
    "CreateOutcome",
    "DatabaseAdmin",
    "LocalStorage",
    "PostgresDatabaseAdmin",
    "ResolvedTenant",
    "S3Storage",
    "StorageBackend",
    "TenantResolver",
    "TenantSource",
    "create_storage",
    "current_year",
    "tenant_database_name",
    "tenant_database_url",
    "validate_slug",
    "year_from_database_name",
]
