"""Deterministic tenant database naming.

Every generation of a tenant database is named from the tenant slug and
the year it serves, ``tenant_{slug}_{year}`` by default. The same slug and
year always produce the same identifier.
"""

import re
from datetime import UTC, datetime

from app.core.constants import (
    DATABASE_NAME_PATTERN,
    DB_NAME_PLACEHOLDER,
    DB_NAME_YEAR_PATTERN,
    DEFAULT_DB_NAME_PATTERN,
    MAX_DATABASE_NAME_LENGTH,
    MAX_SLUG_LENGTH,
    SLUG_PATTERN,
)
from app.core.errors import InvalidTenantSlugError, ValidationError


_SLUG_RE = re.compile(SLUG_PATTERN)
_DATABASE_NAME_RE = re.compile(DATABASE_NAME_PATTERN)
_YEAR_RE = re.compile(DB_NAME_YEAR_PATTERN)


def validate_slug(slug: str) -> str:
    """Check that a slug is safe for routing and database naming.

    Args:
        slug: Candidate tenant slug

    Returns:
        The slug, unchanged

    Raises:
        InvalidTenantSlugError: If the slug is empty, too long or has
            characters outside ``[a-z0-9_-]``
    """
    if not slug or len(slug) > MAX_SLUG_LENGTH or not _SLUG_RE.match(slug):
        raise InvalidTenantSlugError(
            f"Slug '{slug}' must be 1-{MAX_SLUG_LENGTH} lowercase letters, "
            "digits, '-' or '_' and start with a letter or digit",
            errors=[{"field": "slug", "message": "invalid slug"}],
        )
    return slug


def validate_database_name(name: str) -> str:
    """Check that a database identifier is safe to quote and create.

    Raises:
        ValidationError: If the name is too long or has unsafe characters
    """
    if (
        not name
        or len(name) > MAX_DATABASE_NAME_LENGTH
        or not _DATABASE_NAME_RE.match(name)
    ):
        raise ValidationError(
            f"Invalid database name '{name}'",
            error_code="invalid_database_name",
            details={"database": name},
        )
    return name


def current_year() -> int:
    """Return the current calendar year (UTC)."""
    return datetime.now(UTC).year


def tenant_database_name(
    slug: str,
    year: int,
    pattern: str = DEFAULT_DB_NAME_PATTERN,
) -> str:
    """Build the database identifier for one generation of a tenant.

    Args:
        slug: Tenant slug
        year: Year the generation serves
        pattern: Naming pattern with ``{slug}`` and ``{year}`` placeholders

    Returns:
        Database identifier, e.g. ``tenant_acme_2025``

    Examples:
        >>> tenant_database_name("acme", 2025)
        'tenant_acme_2025'
    """
    validate_slug(slug)
    return validate_database_name(pattern.format(slug=slug, year=year))


def tenant_database_url(template: str, db_name: str) -> str:
    """Substitute a database name into the tenant connection URL template."""
    return template.replace(DB_NAME_PLACEHOLDER, db_name)


def year_from_database_name(db_name: str) -> int | None:
    """Extract the trailing four-digit year from a database identifier."""
    match = _YEAR_RE.search(db_name)
    return int(match.group(1)) if match else None
