"""ARQ worker configuration.

Defines the worker settings including registered jobs,
cron schedules, and startup/shutdown hooks.
"""

from typing import Any, ClassVar

import structlog
from arq import cron

from app.config import get_settings
from app.core.container import Platform
from app.core.jobs.tasks import (
    purge_audit_logs,
    rotate_tenant_year_job,
    setup_tenant_database_job,
)
from app.core.jobs.utils import get_redis_settings
from app.core.logging import configure_logging


async def startup(ctx: dict[str, Any]) -> None:
    """Build the platform shared by all jobs of this worker.

    Args:
        ctx: Worker context dict (shared across all jobs)
    """
    settings = get_settings()
    configure_logging(settings)

    log = structlog.get_logger()
    log.info("worker_startup", environment=settings.environment)

    ctx["platform"] = Platform.from_settings(settings)

    log.info("worker_startup_complete")


async def shutdown(ctx: dict[str, Any]) -> None:
    """Release the platform's engines when the worker stops."""
    log = structlog.get_logger()
    log.info("worker_shutdown")

    platform = ctx.get("platform")
    if platform is not None:
        await platform.aclose()

    log.info("worker_shutdown_complete")


class WorkerSettings:
    """ARQ worker settings.

    Run the worker with:
        arq app.core.jobs.worker.WorkerSettings
    """

    functions: ClassVar[list[Any]] = [
        setup_tenant_database_job,
        rotate_tenant_year_job,
        purge_audit_logs,
    ]

    cron_jobs: ClassVar[list[Any]] = [
        cron(purge_audit_logs, hour=3, minute=0),
    ]

    on_startup = startup
    on_shutdown = shutdown

    redis_settings = get_redis_settings(get_settings())

    max_jobs = 10
    job_timeout = 1800  # seconds
    keep_result = 3600
    # failed provisioning is resumed with setup-tenant-db --resume
    retry_jobs = False
    max_tries = 1
