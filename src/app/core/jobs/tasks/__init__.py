"""Background job tasks.

Each task module defines async functions registered in the worker.
"""

from app.core.jobs.tasks.cleanup import purge_audit_logs
from app.core.jobs.tasks.provisioning import rotate_tenant_year_job, setup_tenant_database_job


__all__ = [
    "purge_audit_logs",
    "rotate_tenant_year_job",
    "setup_tenant_database_job",
]
