"""Cleanup tasks for expired data."""

from typing import Any

import structlog

from app.core.audit import AuditService


log = structlog.get_logger()


async def purge_audit_logs(ctx: dict[str, Any]) -> dict[str, int]:
    """Delete audit entries older than ``AUDIT_LOG_RETENTION_DAYS``.

    Scheduled daily at 3 AM.

    Args:
        ctx: Worker context holding the platform

    Returns:
        Dict with the number of deleted entries
    """
    platform = ctx["platform"]
    retention_days = platform.settings.audit_log_retention_days

    async with platform.session_factory() as session, session.begin():
        deleted = await AuditService(session).purge(retention_days)

    log.info(
        "purge_audit_logs_complete",
        audit_logs_deleted=deleted,
        retention_days=retention_days,
    )
    return {"audit_logs_deleted": deleted}
