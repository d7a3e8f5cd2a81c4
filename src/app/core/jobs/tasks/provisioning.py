"""Tenant database jobs.

Provisioning and rotation can take minutes (database creation plus the
full migration chain), so the HTTP API hands them to the worker.
"""

from typing import Any

import structlog


log = structlog.get_logger()


async def setup_tenant_database_job(
    ctx: dict[str, Any],
    slug: str,
    resume: bool = False,
) -> dict[str, Any]:
    """Re-provision a tenant's current database.

    Returns:
        Provisioning result without credentials
    """
    service = ctx["platform"].tenant_service()
    structlog.contextvars.bind_contextvars(job_id=ctx.get("job_id"), tenant_slug=slug)
    try:
        result = await service.setup_tenant_database(slug, resume=resume)
    finally:
        structlog.contextvars.unbind_contextvars("job_id", "tenant_slug")

    # Job results are stored in Redis; keep credentials out of them
    return result.model_dump(mode="json", exclude={"credentials", "database_url"})


async def rotate_tenant_year_job(
    ctx: dict[str, Any],
    slug: str,
    year: int | None = None,
) -> dict[str, Any]:
    """Rotate a tenant to its next database generation."""
    service = ctx["platform"].tenant_service()
    tenant = await service.rotate_year(slug, year)
    log.info("rotate_tenant_year_job_complete", tenant_slug=slug, database=tenant.current_db)
    return {
        "slug": tenant.slug,
        "current_db": tenant.current_db,
        "all_databases": list(tenant.all_databases),
    }
