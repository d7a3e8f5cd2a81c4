"""Error handling module with RFC 7807 Problem Details."""

from app.core.errors.exceptions import (
    AppException,
    BadRequestError,
    ConfigurationError,
    ConflictError,
    DatabaseCreateFailed,
    DuplicateGenerationError,
    DuplicateTenantError,
    EnrichmentFailed,
    InvalidTenantSlugError,
    MigrationFailed,
    NotFoundError,
    ProvisioningError,
    RegistryError,
    RoutingError,
    ServiceUnavailableError,
    TenantNotFoundError,
    ValidationError,
)
from app.core.errors.handlers import (
    FieldError,
    ProblemDetail,
    register_exception_handlers,
)


__all__ = [
    # Exceptions
    "AppException",
    "BadRequestError",
    "ConfigurationError",
    "ConflictError",
    "DatabaseCreateFailed",
    "DuplicateGenerationError",
    "DuplicateTenantError",
    "EnrichmentFailed",
    # Handlers
    "FieldError",
    "InvalidTenantSlugError",
    "MigrationFailed",
    "NotFoundError",
    "ProblemDetail",
    "ProvisioningError",
    "RegistryError",
    "RoutingError",
    "ServiceUnavailableError",
    "TenantNotFoundError",
    "ValidationError",
    "register_exception_handlers",
]
