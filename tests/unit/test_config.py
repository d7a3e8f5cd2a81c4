"""Tests for settings loading."""

import pytest

from app.config import load_settings
from app.core.errors import ConfigurationError


REQUIRED = {
    "registry_database_url": "postgresql+asyncpg://u:p@localhost/registry",
    "tenant_database_url_template": "postgresql+asyncpg://u:p@localhost/{db_name}",
    "admin_database_url": "postgresql+asyncpg://u:p@localhost/postgres",
}


class TestLoadSettings:
    """Tests for load_settings."""

    def test_loads_with_required_values(self) -> None:
        settings = load_settings(**REQUIRED)

        assert settings.tenant_db_name_pattern == "tenant_{slug}_{year}"
        assert settings.reserved_subdomain_set == frozenset({"www", "admin", "api"})

    def test_template_without_placeholder(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            load_settings(
                **{**REQUIRED, "tenant_database_url_template": "postgresql://u:p@h/db"}
            )

        fields = [e["field"] for e in exc_info.value.details["errors"]]
        assert "tenant_database_url_template" in fields

    def test_name_pattern_needs_slug_and_year(self) -> None:
        with pytest.raises(ConfigurationError):
            load_settings(**REQUIRED, tenant_db_name_pattern="tenant_{slug}")

    def test_path_prefix_is_normalized(self) -> None:
        settings = load_settings(**REQUIRED, tenant_path_prefix="t/")

        assert settings.tenant_path_prefix == "/t"

    def test_cors_origin_list(self) -> None:
        settings = load_settings(**REQUIRED, cors_origins="https://a.com, https://b.com")

        assert settings.cors_origin_list == ["https://a.com", "https://b.com"]

    def test_storage_defaults_to_local(self) -> None:
        settings = load_settings(**REQUIRED)

        assert settings.storage_type == "local"

    def test_s3_storage_needs_bucket_and_region(self) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            load_settings(**REQUIRED, storage_type="s3", storage_s3_bucket="assets")

        assert "STORAGE_S3_REGION" in str(exc_info.value.details["errors"])

    def test_unknown_storage_type(self) -> None:
        with pytest.raises(ConfigurationError):
            load_settings(**REQUIRED, storage_type="ftp")
