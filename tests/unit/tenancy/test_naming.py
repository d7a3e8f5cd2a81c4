"""Tests for tenant database naming."""

import pytest

from app.core.errors import InvalidTenantSlugError, ValidationError
from app.core.tenancy.naming import (
    tenant_database_name,
    tenant_database_url,
    validate_database_name,
    validate_slug,
    year_from_database_name,
)


class TestTenantDatabaseName:
    """Tests for tenant_database_name."""

    def test_default_pattern(self) -> None:
        assert tenant_database_name("acme", 2025) == "tenant_acme_2025"

    def test_is_deterministic(self) -> None:
        assert tenant_database_name("acme", 2026) == tenant_database_name("acme", 2026)

    def test_differs_by_year(self) -> None:
        assert tenant_database_name("acme", 2025) != tenant_database_name("acme", 2026)

    def test_custom_pattern(self) -> None:
        assert tenant_database_name("acme", 2025, "db_{year}_{slug}") == "db_2025_acme"

    def test_slug_with_hyphen(self) -> None:
        assert tenant_database_name("acme-co", 2025) == "tenant_acme-co_2025"

    @pytest.mark.parametrize("slug", ["", "Acme", "acme corp", "acme;drop", "-acme"])
    def test_rejects_invalid_slug(self, slug: str) -> None:
        with pytest.raises(InvalidTenantSlugError):
            tenant_database_name(slug, 2025)

    def test_rejects_name_longer_than_identifier_limit(self) -> None:
        with pytest.raises(ValidationError):
            tenant_database_name("a" * 50, 2025, "tenant_database_{slug}_{year}")


class TestValidation:
    """Tests for slug and identifier validation."""

    def test_validate_slug_returns_slug(self) -> None:
        assert validate_slug("acme_2") == "acme_2"

    def test_validate_slug_too_long(self) -> None:
        with pytest.raises(InvalidTenantSlugError) as exc_info:
            validate_slug("a" * 51)

        assert exc_info.value.error_code == "invalid_slug"

    def test_validate_database_name_rejects_quotes(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            validate_database_name('tenant_"x"_2025')

        assert exc_info.value.error_code == "invalid_database_name"


class TestHelpers:
    """Tests for URL substitution and year extraction."""

    def test_database_url_substitutes_placeholder(self) -> None:
        template = "postgresql+asyncpg://u:p@db:5432/{db_name}"

        assert (
            tenant_database_url(template, "tenant_acme_2025")
            == "postgresql+asyncpg://u:p@db:5432/tenant_acme_2025"
        )

    def test_year_from_database_name(self) -> None:
        assert year_from_database_name("tenant_acme_2025") == 2025

    def test_year_from_database_name_without_year(self) -> None:
        assert year_from_database_name("tenant_acme") is None
