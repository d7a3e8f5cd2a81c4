"""Job registry and enqueueing utilities.

The web app opens one ARQ pool at startup and keeps it on
``app.state.arq_pool``; ``enqueue`` takes the pool explicitly.
"""

from datetime import timedelta
from typing import Any

from arq import ArqRedis, create_pool

from app.config import Settings
from app.core.errors import ServiceUnavailableError
from app.core.jobs.utils import get_redis_settings


SETUP_TENANT_DATABASE_JOB = "setup_tenant_database_job"
ROTATE_TENANT_YEAR_JOB = "rotate_tenant_year_job"
PURGE_AUDIT_LOGS_JOB = "purge_audit_logs"


async def init_arq_pool(settings: Settings) -> ArqRedis:
    """Open an ARQ connection pool.

    Should be called during application startup.
    """
    return await create_pool(get_redis_settings(settings))


async def enqueue(
    pool: ArqRedis | None,
    job_name: str,
    *args: Any,
    _defer_by: timedelta | None = None,
    _job_id: str | None = None,
    **kwargs: Any,
) -> Any:
    """Enqueue a background job.

    Args:
        pool: ARQ pool, None when Redis was unavailable at startup
        job_name: Name of the job function to run
        *args: Positional arguments for the job
        _defer_by: Delay execution by this duration
        _job_id: Custom job ID (for deduplication)
        **kwargs: Keyword arguments for the job

    Returns:
        Job instance, or None when a job with the same id is already queued

    Raises:
        ServiceUnavailableError: If there is no pool

    Example:
        await enqueue(pool, "setup_tenant_database_job", "acme", resume=True)
    """
    if pool is None:
        raise ServiceUnavailableError(
            "Background job queue is not available",
            error_code="queue_unavailable",
        )
    return await pool.enqueue_job(
        job_name,
        *args,
        _defer_by=_defer_by,
        _job_id=_job_id,
        **kwargs,
    )
