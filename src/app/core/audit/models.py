"""Audit log database model.

Records tenant lifecycle actions (provisioning, rotation, updates,
deletion) in the registry database.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, DateTime, ForeignKey, String, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.core.constants import (
    MAX_ACTION_LENGTH,
    MAX_RESOURCE_TYPE_LENGTH,
    MAX_SLUG_LENGTH,
)
from app.core.database.base import Base, UUIDMixin


JSONType = JSON().with_variant(JSONB(), "postgresql")


class AuditLog(Base, UUIDMixin):
    """Audit log entry for a tenant lifecycle action.

    Attributes:
        tenant_id: Tenant the action applied to; nulled when the tenant
            row is deleted so the trail outlives the tenant
        tenant_slug: Slug at the time of the action
        action: What happened (tenant.created, tenant.rotated, ...)
        resource_type: Type of resource affected (tenant, database, ...)
        resource_id: ID of the affected resource
        request_id: Correlation ID for request tracing
        changes: Field changes {field: {old: x, new: y}}
        metadata: Additional context about the action
        created_at: When the action occurred
    """

    __tablename__ = "tenant_audit_logs"

    tenant_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("tenants.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    tenant_slug: Mapped[str] = mapped_column(
        String(MAX_SLUG_LENGTH),
        nullable=False,
        index=True,
    )

    action: Mapped[str] = mapped_column(
        String(MAX_ACTION_LENGTH),
        nullable=False,
        index=True,
    )
    resource_type: Mapped[str] = mapped_column(
        String(MAX_RESOURCE_TYPE_LENGTH),
        nullable=False,
    )
    resource_id: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )
    request_id: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
        index=True,
    )

    changes: Mapped[dict[str, Any] | None] = mapped_column(
        JSONType,
        nullable=True,
    )
    metadata_: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata",  # Column name in database
        JSONType,
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return (
            f"<AuditLog(id={self.id}, action={self.action}, "
            f"tenant_slug={self.tenant_slug})>"
        )
