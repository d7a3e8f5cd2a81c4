"""Operations on a tenant database after it has been seeded.

Provisioning applies the company profile, creates the default export
template and the initial location through these helpers. Platform-wide
maintenance (super admin sync, cross-tenant user search) uses them too.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from app.tenant_db.models import Company, ExportTemplate, Location, User
from app.tenant_db.seed import SeedAccount, find_account, upsert_user


COMPANY_PROFILE_FIELDS = frozenset(
    {
        "name",
        "industry",
        "address",
        "city",
        "state",
        "postal_code",
        "country",
        "phone",
        "email",
        "website",
        "description",
        "founded_year",
        "employee_count",
        "capital",
        "tax_number",
        "tax_office",
        "registration_number",
        "mersis_number",
        "iban",
        "bank_name",
        "account_holder",
        "logo_url",
        "favicon_url",
        "pwa_icon_url",
    }
)

LOCATION_FIELDS = frozenset(
    {
        "name",
        "code",
        "type",
        "address",
        "city",
        "country",
        "postal_code",
        "phone",
        "email",
        "latitude",
        "longitude",
        "description",
    }
)


@asynccontextmanager
async def tenant_session(engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    """Open a session on a tenant database inside one transaction."""
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    async with session_factory() as session, session.begin():
        yield session


async def update_company_profile(
    engine: AsyncEngine,
    company_id: str,
    profile: dict[str, Any],
) -> Company:
    """Apply wizard data and asset URLs to the seeded company.

    Unknown keys and None values are ignored.

    Raises:
        LookupError: If the company row does not exist
    """
    async with tenant_session(engine) as session:
        company = await session.get(Company, company_id)
        if company is None:
            raise LookupError(f"Company '{company_id}' not found")

        for key, value in profile.items():
            if key in COMPANY_PROFILE_FIELDS and value is not None:
                setattr(company, key, value)
        await session.flush()
        return company


async def create_default_export_template(
    engine: AsyncEngine,
    company_id: str,
) -> ExportTemplate:
    """Create the default export template from the company's branding.

    Returns the existing default template when there already is one.
    """
    async with tenant_session(engine) as session:
        result = await session.execute(
            select(ExportTemplate).where(ExportTemplate.is_default.is_(True))
        )
        existing = result.scalars().first()
        if existing is not None:
            return existing

        company = await session.get(Company, company_id)
        if company is None:
            raise LookupError(f"Company '{company_id}' not found")

        template = ExportTemplate(
            name="Default",
            is_default=True,
            company_name=company.name,
            logo_url=company.logo_url,
            favicon_url=company.favicon_url,
            address=company.address,
            phone=company.phone,
            email=company.email,
            website=company.website,
            tax_number=company.tax_number,
            settings={"paper_size": "A4", "orientation": "portrait"},
        )
        session.add(template)
        await session.flush()
        return template


async def create_initial_location(
    engine: AsyncEngine,
    company_id: str | None,
    data: dict[str, Any],
) -> Location:
    """Create the tenant's first location.

    A location with the same name and company is reused, so re-running
    provisioning does not duplicate it.
    """
    values = {k: v for k, v in data.items() if k in LOCATION_FIELDS and v is not None}
    values.setdefault("type", "office")

    async with tenant_session(engine) as session:
        result = await session.execute(
            select(Location).where(
                Location.name == values.get("name"),
                Location.company_id.is_(None)
                if company_id is None
                else Location.company_id == company_id,
            )
        )
        existing = result.scalars().first()
        if existing is not None:
            return existing

        location = Location(company_id=company_id, is_active=True, **values)
        session.add(location)
        await session.flush()
        return location


async def upsert_super_admin(
    engine: AsyncEngine, account: SeedAccount, reset_password: bool = True
) -> tuple[User, bool]:
    """Create or refresh the platform super admin in one tenant database.

    Returns the user and whether it was created by this call.
    """
    async with tenant_session(engine) as session:
        created = await find_account(session, account) is None
        result = await session.execute(select(Company.id).limit(1))
        company_id = result.scalar_one_or_none()
        user = await upsert_user(
            session, account, company_id, reset_password=reset_password
        )
        return user, created


async def find_users(engine: AsyncEngine, identifier: str) -> list[User]:
    """Return users whose email or username matches ``identifier``."""
    async with tenant_session(engine) as session:
        result = await session.execute(
            select(User).where(
                or_(User.email == identifier, User.username == identifier)
            )
        )
        return list(result.scalars().all())
