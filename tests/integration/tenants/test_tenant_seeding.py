"""Integration tests for tenant database seeding and enrichment helpers."""

from pathlib import Path

import pytest
from sqlalchemy import func, select

from app.core.security import verify_password
from app.tenant_db.enrichment import (
    create_default_export_template,
    create_initial_location,
    tenant_session,
    update_company_profile,
    upsert_super_admin,
)
from app.tenant_db.models import Company, Location, Role, TenantBase, User
from app.tenant_db.seed import (
    ROLE_AGENCY_USER,
    ROLE_CLIENT_USER,
    ROLE_SUPER_ADMIN,
    SeedAccount,
    SeedOptions,
    TenantSeeder,
)


pytestmark = pytest.mark.integration


def _options(password: str = "pw-1") -> SeedOptions:
    return SeedOptions(
        company_name="Acme",
        super_admin=SeedAccount(
            "root@platform.test", "superadmin", password, "Super Admin", ROLE_SUPER_ADMIN
        ),
        tenant_admin=SeedAccount(
            "admin@acme.com", "admin", password, "Admin User", ROLE_AGENCY_USER
        ),
        default_user=SeedAccount(
            "user@acme.com", "user", password, "Default User", ROLE_CLIENT_USER, active=False
        ),
    )


@pytest.fixture
async def tenant_url(tmp_path: Path, router) -> str:
    url = f"sqlite+aiosqlite:///{tmp_path / 'tenant_acme_2025.db'}"
    async with router.get(url).begin() as conn:
        await conn.run_sync(TenantBase.metadata.create_all)
    return url


async def _count(engine, model) -> int:
    async with tenant_session(engine) as session:
        return await session.scalar(select(func.count()).select_from(model))


class TestTenantSeeder:
    """Tests for TenantSeeder."""

    @pytest.mark.asyncio
    async def test_seeds_company_roles_and_users(self, router, tenant_url):
        result = await TenantSeeder(router).run(tenant_url, "acme", _options())

        engine = router.get(tenant_url)
        assert result.company_id == "acme-company-001"
        assert set(result.user_ids) == {"super_admin", "tenant_admin", "default_user"}
        assert await _count(engine, Company) == 1
        assert await _count(engine, Role) == 3
        assert await _count(engine, User) == 3

    @pytest.mark.asyncio
    async def test_seeding_twice_updates_in_place(self, router, tenant_url):
        seeder = TenantSeeder(router)
        first = await seeder.run(tenant_url, "acme", _options("pw-1"))

        second = await seeder.run(tenant_url, "acme", _options("pw-2"))

        engine = router.get(tenant_url)
        assert second.user_ids == first.user_ids
        assert await _count(engine, User) == 3
        async with tenant_session(engine) as session:
            admin = (
                await session.execute(select(User).where(User.username == "admin"))
            ).scalar_one()
        assert verify_password("pw-2", admin.password_hash)


class TestEnrichment:
    """Tests for the post-seed helpers."""

    @pytest.fixture
    async def company_id(self, router, tenant_url) -> str:
        result = await TenantSeeder(router).run(tenant_url, "acme", _options())
        return result.company_id

    @pytest.mark.asyncio
    async def test_update_company_profile_ignores_unknown_fields(
        self, router, tenant_url, company_id
    ):
        company = await update_company_profile(
            router.get(tenant_url),
            company_id,
            {"city": "Ankara", "password_hash": "x", "phone": None},
        )

        assert company.city == "Ankara"
        assert company.phone is None

    @pytest.mark.asyncio
    async def test_update_missing_company(self, router, tenant_url):
        with pytest.raises(LookupError):
            await update_company_profile(router.get(tenant_url), "missing", {"city": "X"})

    @pytest.mark.asyncio
    async def test_default_export_template_is_created_once(
        self, router, tenant_url, company_id
    ):
        engine = router.get(tenant_url)

        first = await create_default_export_template(engine, company_id)
        second = await create_default_export_template(engine, company_id)

        assert first.id == second.id
        assert first.company_name == "Acme"

    @pytest.mark.asyncio
    async def test_initial_location_is_not_duplicated(self, router, tenant_url, company_id):
        engine = router.get(tenant_url)
        data = {"name": "Head Office", "city": "Izmir", "unknown": 1}

        first = await create_initial_location(engine, company_id, data)
        second = await create_initial_location(engine, company_id, data)

        assert first.id == second.id
        assert first.type == "office"
        assert await _count(engine, Location) == 1

    @pytest.mark.asyncio
    async def test_upsert_super_admin_links_company(self, router, tenant_url, company_id):
        account = SeedAccount(
            "ops@platform.test", "ops", "ops-pw", "Ops", ROLE_SUPER_ADMIN, must_change_password=False
        )

        user, created = await upsert_super_admin(router.get(tenant_url), account)

        assert user.company_id == company_id
        assert created is True
        assert user.must_change_password is False
