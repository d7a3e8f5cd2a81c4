"""Tenant administration API routes."""

from fastapi import Query, Request, Response, status

from app.core.jobs import ROTATE_TENANT_YEAR_JOB, SETUP_TENANT_DATABASE_JOB, enqueue
from app.modules.tenants import router
from app.modules.tenants.dependencies import CurrentTenant, TenantEngine, TenantServiceDep
from app.modules.tenants.models import TenantStatus
from app.modules.tenants.schemas import (
    CurrentTenantResponse,
    DatabaseInfo,
    JobAccepted,
    ProvisioningResult,
    ResolveResponse,
    RotateRequest,
    SetupRequest,
    TenantCreate,
    TenantListParams,
    TenantListResponse,
    TenantRead,
    TenantUpdate,
)


# ============================================================
# Collection
# ============================================================


@router.get(
    "",
    response_model=TenantListResponse,
    summary="List tenants",
    description="List tenants, newest first, optionally filtered by agency or status.",
)
async def list_tenants(
    service: TenantServiceDep,
    agency_id: str | None = Query(None, description="Filter by agency"),
    tenant_status: TenantStatus | None = Query(None, alias="status"),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(10, ge=1, le=100, description="Items per page"),
) -> TenantListResponse:
    params = TenantListParams(
        agency_id=agency_id,
        status=tenant_status,
        page=page,
        page_size=page_size,
    )
    tenants, total = await service.list_tenants(params)
    return TenantListResponse(
        items=[TenantRead.model_validate(t) for t in tenants],
        total=total,
        page=page,
        page_size=page_size,
    )


@router.post(
    "",
    response_model=ProvisioningResult,
    status_code=status.HTTP_201_CREATED,
    summary="Provision tenant",
    description=(
        "Register a tenant and provision its first database. The response "
        "carries the generated initial credentials; they are not stored."
    ),
)
async def create_tenant(data: TenantCreate, service: TenantServiceDep) -> ProvisioningResult:
    return await service.create_tenant(data)


@router.get(
    "/resolve",
    response_model=ResolveResponse,
    summary="Resolve tenant",
    description="Show which tenant the current host, path or cookie resolves to.",
)
async def resolve_tenant(request: Request) -> ResolveResponse:
    return ResolveResponse(
        tenant_slug=getattr(request.state, "tenant_slug", None),
        source=getattr(request.state, "tenant_source", None),
    )


@router.get(
    "/current",
    response_model=CurrentTenantResponse,
    summary="Current tenant",
    description=(
        "The tenant resolved from host, path or cookie, connected to its current "
        "database or to the generation named in X-Tenant-Year."
    ),
)
async def current_tenant(tenant: CurrentTenant, engine: TenantEngine) -> CurrentTenantResponse:
    return CurrentTenantResponse(
        slug=tenant.slug,
        name=tenant.name,
        current_db=tenant.current_db,
        database=engine.url.database,
    )


@router.get(
    "/databases",
    response_model=list[DatabaseInfo],
    summary="List all tenant databases",
)
async def list_all_databases(service: TenantServiceDep) -> list[DatabaseInfo]:
    return await service.list_databases()


# ============================================================
# Single tenant
# ============================================================


@router.get("/{slug}", response_model=TenantRead, summary="Get tenant")
async def get_tenant(slug: str, service: TenantServiceDep) -> TenantRead:
    return TenantRead.model_validate(await service.get_tenant(slug))


@router.patch(
    "/{slug}",
    response_model=TenantRead,
    summary="Update tenant",
    description="Update name, subdomain, custom domain, status or metadata. The slug is immutable.",
)
async def update_tenant(
    slug: str,
    data: TenantUpdate,
    service: TenantServiceDep,
) -> TenantRead:
    return TenantRead.model_validate(await service.update_tenant(slug, data))


@router.delete(
    "/{slug}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete tenant",
    description=(
        "Hard delete drops every database generation and removes the tenant. "
        "With hard=false the tenant is only deactivated."
    ),
)
async def delete_tenant(
    slug: str,
    service: TenantServiceDep,
    hard: bool = Query(True, description="Drop databases and remove the row"),
) -> Response:
    await service.delete_tenant(slug, hard=hard)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{slug}/rotate",
    response_model=TenantRead,
    summary="Rotate tenant year",
    description="Create, migrate and switch to the database generation for a new year.",
)
async def rotate_tenant(
    slug: str,
    service: TenantServiceDep,
    data: RotateRequest | None = None,
) -> TenantRead:
    tenant = await service.rotate_year(slug, data.year if data else None)
    return TenantRead.model_validate(tenant)


@router.post(
    "/{slug}/rotate/async",
    response_model=JobAccepted,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Queue tenant rotation",
)
async def rotate_tenant_async(
    slug: str,
    request: Request,
    service: TenantServiceDep,
    data: RotateRequest | None = None,
) -> JobAccepted:
    await service.get_tenant(slug)
    job = await enqueue(
        getattr(request.app.state, "arq_pool", None),
        ROTATE_TENANT_YEAR_JOB,
        slug,
        year=data.year if data else None,
    )
    return JobAccepted(job_id=job.job_id if job else None)


@router.post(
    "/{slug}/setup",
    response_model=JobAccepted,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Re-provision tenant database",
    description="Queue an idempotent re-run of provisioning against the current database.",
)
async def setup_tenant(
    slug: str,
    request: Request,
    service: TenantServiceDep,
    data: SetupRequest | None = None,
) -> JobAccepted:
    await service.get_tenant(slug)
    job = await enqueue(
        getattr(request.app.state, "arq_pool", None),
        SETUP_TENANT_DATABASE_JOB,
        slug,
        resume=data.resume if data else False,
        _job_id=f"setup:{slug}",
    )
    return JobAccepted(job_id=job.job_id if job else None)


@router.get(
    "/{slug}/databases",
    response_model=list[DatabaseInfo],
    summary="List tenant databases",
    description="Every yearly generation of the tenant, oldest first.",
)
async def list_tenant_databases(slug: str, service: TenantServiceDep) -> list[DatabaseInfo]:
    return await service.list_databases(slug)

