"""Integration tests for the tenant registry repository."""

from typing import get_type_hints

import pytest

from app.core.errors import DuplicateTenantError, RegistryError, TenantNotFoundError
from app.modules.tenants.models import ProvisioningStep, Tenant, TenantStatus
from app.modules.tenants.repos import TenantRepository


pytestmark = pytest.mark.integration


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session, session.begin():
        yield session


async def _create(repo: TenantRepository, slug: str, **kwargs):
    return await repo.create(
        name=slug.title(),
        slug=slug,
        db_name=f"tenant_{slug}_2025",
        **kwargs,
    )


class TestInterface:
    """Tests for the repository's public surface."""

    def test_no_method_shadows_builtin_list(self):
        assert "list" not in vars(TenantRepository)
        assert get_type_hints(TenantRepository.list_active)["return"] == list[Tenant]


class TestCreate:
    """Tests for TenantRepository.create."""

    @pytest.mark.asyncio
    async def test_create_sets_first_generation(self, session):
        repo = TenantRepository(session)

        tenant = await _create(repo, "acme", subdomain="acme")

        assert tenant.current_db == "tenant_acme_2025"
        assert tenant.db_name == "tenant_acme_2025"
        assert tenant.all_databases == ["tenant_acme_2025"]
        assert tenant.status == TenantStatus.ACTIVE.value
        assert tenant.setup_failed is False
        assert tenant.provisioning_step == ProvisioningStep.REGISTERED.value

    @pytest.mark.asyncio
    async def test_duplicate_slug(self, session_factory):
        async with session_factory() as session, session.begin():
            await _create(TenantRepository(session), "acme")

        with pytest.raises(DuplicateTenantError):
            async with session_factory() as session, session.begin():
                await _create(TenantRepository(session), "acme")

    @pytest.mark.asyncio
    async def test_duplicate_subdomain(self, session_factory):
        async with session_factory() as session, session.begin():
            await _create(TenantRepository(session), "acme", subdomain="shared")

        with pytest.raises(DuplicateTenantError):
            async with session_factory() as session, session.begin():
                await _create(TenantRepository(session), "globex", subdomain="shared")


class TestLookups:
    """Tests for lookups and listing."""

    @pytest.mark.asyncio
    async def test_lookup_by_slug_and_domains(self, session):
        repo = TenantRepository(session)
        tenant = await _create(repo, "acme", subdomain="acme", custom_domain="acme.io")

        assert (await repo.get_by_slug("acme")).id == tenant.id
        assert (await repo.get_by_subdomain("acme")).id == tenant.id
        assert (await repo.get_by_custom_domain("acme.io")).id == tenant.id
        assert await repo.get_by_slug("missing") is None

    @pytest.mark.asyncio
    async def test_get_or_raise(self, session):
        with pytest.raises(TenantNotFoundError):
            await TenantRepository(session).get_or_raise("missing")

    @pytest.mark.asyncio
    async def test_list_filters_and_counts(self, session):
        repo = TenantRepository(session)
        await _create(repo, "acme", agency_id="agency-1")
        await _create(repo, "globex", agency_id="agency-1")
        await _create(repo, "initech", agency_id="agency-2")

        tenants, total = await repo.list_tenants(agency_id="agency-1")

        assert total == 2
        assert {t.slug for t in tenants} == {"acme", "globex"}

    @pytest.mark.asyncio
    async def test_list_paginates(self, session):
        repo = TenantRepository(session)
        for slug in ("a1", "a2", "a3"):
            await _create(repo, slug)

        page, total = await repo.list_tenants(page=2, page_size=2)

        assert total == 3
        assert len(page) == 1

    @pytest.mark.asyncio
    async def test_list_active(self, session):
        repo = TenantRepository(session)
        await _create(repo, "acme")
        inactive = await _create(repo, "globex")
        await repo.set_status(inactive, TenantStatus.INACTIVE)

        assert [t.slug for t in await repo.list_active()] == ["acme"]


class TestUpdates:
    """Tests for updates and generation bookkeeping."""

    @pytest.mark.asyncio
    async def test_update_allowed_fields(self, session):
        repo = TenantRepository(session)
        tenant = await _create(repo, "acme")

        tenant = await repo.update(tenant, {"name": "Acme Corp", "metadata": {"plan": "pro"}})

        assert tenant.name == "Acme Corp"
        assert tenant.metadata_ == {"plan": "pro"}

    @pytest.mark.asyncio
    async def test_slug_is_immutable(self, session):
        repo = TenantRepository(session)
        tenant = await _create(repo, "acme")

        with pytest.raises(RegistryError) as exc_info:
            await repo.update(tenant, {"slug": "other"})

        assert exc_info.value.error_code == "field_not_updatable"

    @pytest.mark.asyncio
    async def test_append_database(self, session):
        repo = TenantRepository(session)
        tenant = await _create(repo, "acme")

        tenant = await repo.append_database(tenant.id, "tenant_acme_2026")

        assert tenant.all_databases == ["tenant_acme_2025", "tenant_acme_2026"]
        assert tenant.current_db == "tenant_acme_2026"
        assert tenant.db_name == "tenant_acme_2026"

    @pytest.mark.asyncio
    async def test_append_existing_database_rejected(self, session_factory):
        async with session_factory() as session, session.begin():
            tenant = await _create(TenantRepository(session), "acme")

        with pytest.raises(DuplicateTenantError) as exc_info:
            async with session_factory() as session, session.begin():
                await TenantRepository(session).append_database(tenant.id, "tenant_acme_2025")

        assert exc_info.value.error_code == "generation_exists"

    @pytest.mark.asyncio
    async def test_mark_setup_failed_and_reactivate(self, session):
        repo = TenantRepository(session)
        tenant = await _create(repo, "acme")

        tenant = await repo.mark_setup_failed(tenant)
        assert tenant.setup_failed is True
        assert tenant.status == TenantStatus.SETUP_FAILED.value

        tenant = await repo.set_status(tenant, TenantStatus.ACTIVE)
        assert tenant.setup_failed is False

    @pytest.mark.asyncio
    async def test_mark_step(self, session):
        repo = TenantRepository(session)
        tenant = await _create(repo, "acme")

        tenant = await repo.mark_step(tenant, ProvisioningStep.SEEDED)

        assert tenant.has_completed(ProvisioningStep.MIGRATED)
        assert tenant.has_completed(ProvisioningStep.SEEDED)
        assert not tenant.has_completed(ProvisioningStep.STORAGE_READY)
