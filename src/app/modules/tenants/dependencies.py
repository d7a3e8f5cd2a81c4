"""FastAPI dependencies for tenant-scoped requests."""

from typing import Annotated

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncEngine

from app.api.dependencies import PlatformDep
from app.core.constants import TENANT_YEAR_HEADER
from app.core.errors import BadRequestError, NotFoundError, TenantNotFoundError
from app.core.tenancy.naming import tenant_database_name, tenant_database_url
from app.modules.tenants.models import Tenant
from app.modules.tenants.repos import TenantRepository
from app.modules.tenants.services import TenantService


def get_tenant_service(platform: PlatformDep) -> TenantService:
    return platform.tenant_service()


TenantServiceDep = Annotated[TenantService, Depends(get_tenant_service)]


async def get_current_tenant(request: Request, platform: PlatformDep) -> Tenant:
    """Load the registry row of the tenant resolved for this request.

    Raises:
        BadRequestError: If the request carries no tenant context
        TenantNotFoundError: If the slug is unknown or the tenant inactive
    """
    slug = getattr(request.state, "tenant_slug", None)
    if not slug:
        raise BadRequestError(
            "No tenant could be resolved for this request",
            error_code="tenant_required",
        )

    async with platform.session_factory() as session:
        tenant = await TenantRepository(session).get_by_slug(slug)

    if tenant is None or not tenant.is_active:
        raise TenantNotFoundError(slug)
    return tenant


CurrentTenant = Annotated[Tenant, Depends(get_current_tenant)]


async def get_tenant_engine(
    tenant: CurrentTenant,
    platform: PlatformDep,
    year: Annotated[int | None, Header(alias=TENANT_YEAR_HEADER)] = None,
) -> AsyncEngine:
    """Return the connection handle for the current tenant's database.

    The current generation is used unless ``X-Tenant-Year`` names an
    earlier one the tenant owns.

    Raises:
        NotFoundError: If the tenant has no generation for that year
    """
    db_name = tenant.current_db
    if year is not None:
        db_name = tenant_database_name(
            tenant.slug, year, platform.settings.tenant_db_name_pattern
        )
        if db_name not in tenant.all_databases:
            raise NotFoundError(
                f"Tenant '{tenant.slug}' has no database for {year}",
                error_code="generation_not_found",
                resource="database",
                resource_id=db_name,
            )

    url = tenant_database_url(platform.settings.tenant_database_url_template, db_name)
    return platform.router.get(url)


TenantEngine = Annotated[AsyncEngine, Depends(get_tenant_engine)]
