"""Background job processing with ARQ.

Tenant provisioning and rotation run in the worker; the API only
enqueues them.
"""

from app.core.jobs.registry import (
    PURGE_AUDIT_LOGS_JOB,
    ROTATE_TENANT_YEAR_JOB,
    SETUP_TENANT_DATABASE_JOB,
    enqueue,
    init_arq_pool,
)


__all__ = [
    "PURGE_AUDIT_LOGS_JOB",
    "ROTATE_TENANT_YEAR_JOB",
    "SETUP_TENANT_DATABASE_JOB",
    "enqueue",
    "init_arq_pool",
]
