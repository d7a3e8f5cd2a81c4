"""Domain exceptions for the application.

These exceptions represent business-logic and tenancy errors and are automatically
converted to RFC 7807 Problem Details responses by the exception handlers.
"""

from typing import Any


class AppException(Exception):
    """Base exception for all application errors.

    All domain exceptions should inherit from this class.

    Attributes:
        message: Human-readable error message
        error_code: Machine-readable error code for clients
        status_code: HTTP status code for the response
        details: Additional error details
    """

    message: str = "An unexpected error occurred"
    error_code: str = "internal_error"
    status_code: int = 500

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.message
        self.error_code = error_code or self.error_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(AppException):
    """Raised when a requested resource is not found.

    Example:
        raise NotFoundError("User not found", details={"user_id": str(user_id)})
    """

    message = "Resource not found"
    error_code = "not_found"
    status_code = 404

    def __init__(
        self,
        message: str | None = None,
        resource: str | None = None,
        resource_id: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if resource:
            details["resource"] = resource
        if resource_id:
            details["resource_id"] = resource_id
        super().__init__(message=message, details=details, **kwargs)


class ConflictError(AppException):
    """Raised when there's a conflict with existing data.

    Example:
        raise ConflictError("Email already registered", details={"email": email})
    """

    message = "Resource conflict"
    error_code = "conflict"
    status_code = 409


class ValidationError(AppException):
    """Raised when request data fails validation.

    Example:
        raise ValidationError(
            "Invalid input data",
            errors=[{"field": "email", "message": "Invalid email format"}]
        )
    """

    message = "Validation error"
    error_code = "validation_error"
    status_code = 422

    def __init__(
        self,
        message: str | None = None,
        errors: list[dict[str, Any]] | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if errors:
            details["errors"] = errors
        super().__init__(message=message, details=details, **kwargs)


class BadRequestError(AppException):
    """Raised for general client errors.

    Example:
        raise BadRequestError("Invalid request format")
    """

    message = "Bad request"
    error_code = "bad_request"
    status_code = 400


class ServiceUnavailableError(AppException):
    """Raised when a required service is unavailable.

    Example:
        raise ServiceUnavailableError("Database connection failed")
    """

    message = "Service temporarily unavailable"
    error_code = "service_unavailable"
    status_code = 503


# ============================================================
# Tenancy
# ============================================================


class ConfigurationError(AppException):
    """Raised when required configuration is missing or invalid.

    Fatal at startup; never caught by workflows.
    """

    message = "Invalid configuration"
    error_code = "configuration_error"
    status_code = 500


class RegistryError(AppException):
    """Raised when the tenant registry rejects a write or is unreachable."""

    message = "Tenant registry unavailable"
    error_code = "registry_error"
    status_code = 503


class DuplicateTenantError(RegistryError):
    """Raised when a slug, subdomain or custom domain is already taken.

    Callers should treat this as "the tenant may already exist".
    """

    message = "Tenant already exists"
    error_code = "tenant_exists"
    status_code = 409


class TenantNotFoundError(NotFoundError):
    """Raised when no registry row matches the requested tenant."""

    message = "Tenant not found"
    error_code = "tenant_not_found"

    def __init__(self, slug: str, **kwargs: Any) -> None:
        super().__init__(
            f"Tenant '{slug}' not found",
            resource="tenant",
            resource_id=slug,
            **kwargs,
        )


class InvalidTenantSlugError(ValidationError):
    """Raised when a slug cannot be used for routing or database naming."""

    message = "Invalid tenant slug"
    error_code = "invalid_slug"


class ProvisioningError(AppException):
    """Base class for tenant database provisioning failures."""

    message = "Tenant provisioning failed"
    error_code = "provisioning_failed"
    status_code = 500

    def __init__(
        self,
        message: str | None = None,
        database: str | None = None,
        step: str | None = None,
        **kwargs: Any,
    ) -> None:
        details = kwargs.pop("details", {})
        if database:
            details["database"] = database
        if step:
            details["step"] = step
        self.database = database
        self.step = step
        super().__init__(message=message, details=details, **kwargs)


class DatabaseCreateFailed(ProvisioningError):
    """Raised when the physical database could not be created."""

    message = "Database creation failed"
    error_code = "database_create_failed"


class MigrationFailed(ProvisioningError):
    """Raised when the tenant schema migrations could not be applied."""

    message = "Database migration failed"
    error_code = "migration_failed"


class EnrichmentFailed(ProvisioningError):
    """A best-effort provisioning step failed.

    Logged and recorded on the result; never propagated by the workflow.
    """

    message = "Provisioning enrichment step failed"
    error_code = "enrichment_failed"


class DuplicateGenerationError(ConflictError):
    """Raised when a rotation targets a database the tenant already has."""

    message = "Database generation already exists"
    error_code = "generation_exists"


class RoutingError(AppException):
    """Raised when a connection string cannot be routed to a handle."""

    message = "Invalid connection string"
    error_code = "routing_error"
    status_code = 400
