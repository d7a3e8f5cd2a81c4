"""Audit service for tenant lifecycle actions."""

from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.audit.models import AuditLog


log = structlog.get_logger()


class AuditService:
    """Writes audit entries to the registry database.

    When auditing is disabled every call is a no-op returning None.
    """

    def __init__(
        self,
        session: AsyncSession,
        enabled: bool = True,
        request_id: str | None = None,
    ) -> None:
        self.session = session
        self.enabled = enabled
        self.request_id = request_id

    async def log(
        self,
        action: str,
        tenant_slug: str,
        tenant_id: UUID | None = None,
        resource_type: str = "tenant",
        resource_id: str | None = None,
        changes: dict[str, Any] | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> AuditLog | None:
        """Create an audit log entry.

        Args:
            action: Type of action (e.g. "tenant.created")
            tenant_slug: Slug of the tenant acted upon
            tenant_id: Registry id of the tenant, if it still exists
            resource_type: Type of resource (tenant, database, user)
            resource_id: ID of the affected resource
            changes: Dictionary of field changes
            metadata: Additional context data

        Example:
            await audit.log(
                "tenant.rotated",
                tenant_slug="acme",
                tenant_id=tenant.id,
                resource_type="database",
                resource_id="tenant_acme_2026",
            )
        """
        if not self.enabled:
            return None

        entry = AuditLog(
            tenant_id=tenant_id,
            tenant_slug=tenant_slug,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            request_id=self.request_id,
            changes=changes,
            metadata_=metadata,
        )
        self.session.add(entry)
        await self.session.flush()

        log.info(
            "audit_log_created",
            action=action,
            tenant_slug=tenant_slug,
            resource_type=resource_type,
            resource_id=resource_id,
        )
        return entry

    async def purge(self, retention_days: int, now: datetime | None = None) -> int:
        """Delete entries older than the retention window.

        Returns:
            Number of entries deleted
        """
        cutoff = (now or datetime.now(UTC)) - timedelta(days=retention_days)
        result = await self.session.execute(
            delete(AuditLog).where(AuditLog.created_at < cutoff)
        )
        return result.rowcount or 0


def compute_changes(before: dict[str, Any], after: dict[str, Any]) -> dict[str, Any]:
    """Diff two field snapshots into ``{field: {old, new}}``."""
    return {
        key: {"old": before.get(key), "new": value}
        for key, value in after.items()
        if before.get(key) != value
    }
