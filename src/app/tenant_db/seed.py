"""Default data seeded into a freshly migrated tenant database.

Seeding is idempotent: running it twice against the same database updates
the existing rows instead of inserting duplicates.
"""

from dataclasses import dataclass, field

import structlog
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.security import hash_password
from app.core.tenancy.router import ConnectionRouter
from app.tenant_db.models import Company, Role, User


logger = structlog.get_logger()


ROLE_SUPER_ADMIN = "SuperAdmin"
ROLE_AGENCY_USER = "AgencyUser"
ROLE_CLIENT_USER = "ClientUser"

DEFAULT_ROLES: dict[str, dict] = {
    "superadmin": {
        "code": ROLE_SUPER_ADMIN,
        "name": "Super Admin",
        "description": "Full access to every tenant resource",
        "permissions": ["*"],
    },
    "agency": {
        "code": ROLE_AGENCY_USER,
        "name": "Agency User",
        "description": "Administers this tenant",
        "permissions": [
            "company.*",
            "users.*",
            "locations.*",
            "exports.*",
            "settings.*",
        ],
    },
    "client": {
        "code": ROLE_CLIENT_USER,
        "name": "Client User",
        "description": "Read-only access",
        "permissions": ["company.read", "locations.read", "exports.read"],
    },
}


@dataclass
class SeedAccount:
    """Login seeded into a tenant database."""

    email: str
    username: str
    password: str
    name: str
    role: str
    active: bool = True
    must_change_password: bool = True


@dataclass
class SeedOptions:
    """Accounts and company name to seed."""

    company_name: str
    super_admin: SeedAccount
    tenant_admin: SeedAccount
    default_user: SeedAccount


@dataclass
class SeedResult:
    company_id: str
    role_ids: list[str] = field(default_factory=list)
    user_ids: dict[str, str] = field(default_factory=dict)


def default_company_id(slug: str) -> str:
    return f"{slug}-company-001"


def default_company_name(slug: str) -> str:
    return f"{slug[:1].upper()}{slug[1:]} Company"


async def find_account(session: AsyncSession, account: SeedAccount) -> User | None:
    """Return the user matching the account's email or username."""
    stmt = select(User).where(
        or_(User.email == account.email, User.username == account.username)
    )
    result = await session.execute(stmt)
    return result.scalars().first()


async def upsert_user(
    session: AsyncSession,
    account: SeedAccount,
    company_id: str | None,
    reset_password: bool = True,
) -> User:
    """Insert or update an account matched by email or username.

    With ``reset_password`` the password is rewritten so re-seeding hands
    out the credentials returned to the caller. Without it an existing
    account keeps its password.
    """
    user = await find_account(session, account)
    created = user is None
    if user is None:
        user = User(email=account.email, username=account.username)
        session.add(user)

    user.email = account.email
    user.username = account.username
    user.name = account.name
    user.role = account.role
    user.status = "active" if account.active else "inactive"
    if created or reset_password:
        user.password_hash = hash_password(account.password)
        user.must_change_password = account.must_change_password
    user.company_id = company_id
    await session.flush()
    return user


class TenantSeeder:
    """Seeds the default company, roles and users of a tenant database."""

    def __init__(self, router: ConnectionRouter) -> None:
        self.router = router

    async def run(self, url: str, slug: str, options: SeedOptions) -> SeedResult:
        """Seed a tenant database.

        Args:
            url: Connection URL of the tenant database
            slug: Tenant slug, used to derive stable ids
            options: Company name and accounts

        Returns:
            Ids of the seeded rows
        """
        engine = self.router.get(url)
        session_factory = async_sessionmaker(engine, expire_on_commit=False)

        async with session_factory() as session, session.begin():
            company_id = default_company_id(slug)
            company = await session.get(Company, company_id)
            if company is None:
                company = Company(id=company_id, name=options.company_name)
                session.add(company)
            company.name = options.company_name
            company.status = "Active"

            result = SeedResult(company_id=company_id)

            for key, definition in DEFAULT_ROLES.items():
                role_id = f"{slug}-role-{key}"
                role = await session.get(Role, role_id)
                if role is None:
                    role = Role(id=role_id, code=definition["code"])
                    session.add(role)
                role.name = definition["name"]
                role.description = definition["description"]
                role.permissions = list(definition["permissions"])
                role.is_system = True
                result.role_ids.append(role_id)

            await session.flush()

            for key, account in (
                ("super_admin", options.super_admin),
                ("tenant_admin", options.tenant_admin),
                ("default_user", options.default_user),
            ):
                user = await upsert_user(session, account, company_id)
                result.user_ids[key] = user.id

        logger.info(
            "tenant_database_seeded",
            tenant_slug=slug,
            roles=len(result.role_ids),
            users=len(result.user_ids),
        )
        return result
