"""Tenant registry models."""

from enum import Enum
from typing import Any

from sqlalchemy import JSON, Boolean, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.core.constants import (
    MAX_AGENCY_ID_LENGTH,
    MAX_DATABASE_NAME_LENGTH,
    MAX_DOMAIN_LENGTH,
    MAX_NAME_LENGTH,
    MAX_SLUG_LENGTH,
    MAX_STATUS_LENGTH,
    MAX_STEP_LENGTH,
)
from app.core.database.base import Base, TimestampMixin, UUIDMixin


JSONType = JSON().with_variant(JSONB(), "postgresql")


class TenantStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SETUP_FAILED = "setup_failed"


class ProvisioningStep(str, Enum):
    """Ordered provisioning steps; a tenant records the last one completed."""

    REGISTERED = "registered"
    DATABASE_CREATED = "database_created"
    MIGRATED = "migrated"
    SCHEMA_SYNCED = "schema_synced"
    SEEDED = "seeded"
    STORAGE_READY = "storage_ready"
    ASSETS_UPLOADED = "assets_uploaded"
    COMPANY_PROFILE_APPLIED = "company_profile_applied"
    EXPORT_TEMPLATE_CREATED = "export_template_created"
    LOCATION_CREATED = "location_created"
    COMPLETED = "completed"

    @property
    def order(self) -> int:
        return list(ProvisioningStep).index(self)


class Tenant(Base, UUIDMixin, TimestampMixin):
    """A registered tenant and the databases it owns.

    ``all_databases`` lists every yearly generation in creation order and
    only ever grows; ``current_db`` is always one of its entries.
    ``db_name`` mirrors ``current_db`` for older readers.
    """

    __tablename__ = "tenants"

    name: Mapped[str] = mapped_column(
        String(MAX_NAME_LENGTH),
        nullable=False,
        index=True,
    )
    slug: Mapped[str] = mapped_column(
        String(MAX_SLUG_LENGTH),
        nullable=False,
        unique=True,
        index=True,
    )
    subdomain: Mapped[str | None] = mapped_column(
        String(MAX_DOMAIN_LENGTH),
        nullable=True,
        unique=True,
    )
    custom_domain: Mapped[str | None] = mapped_column(
        String(MAX_DOMAIN_LENGTH),
        nullable=True,
        unique=True,
    )
    agency_id: Mapped[str | None] = mapped_column(
        String(MAX_AGENCY_ID_LENGTH),
        nullable=True,
        index=True,
    )
    status: Mapped[str] = mapped_column(
        String(MAX_STATUS_LENGTH),
        default=TenantStatus.ACTIVE.value,
        nullable=False,
        index=True,
    )

    current_db: Mapped[str] = mapped_column(
        String(MAX_DATABASE_NAME_LENGTH),
        nullable=False,
    )
    all_databases: Mapped[list[str]] = mapped_column(
        JSONType,
        default=list,
        nullable=False,
    )
    db_name: Mapped[str] = mapped_column(
        String(MAX_DATABASE_NAME_LENGTH),
        nullable=False,
    )

    setup_failed: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )
    provisioning_step: Mapped[str | None] = mapped_column(
        String(MAX_STEP_LENGTH),
        nullable=True,
    )
    metadata_: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata",
        JSONType,
        nullable=True,
    )

    @property
    def is_active(self) -> bool:
        return self.status == TenantStatus.ACTIVE.value

    def has_completed(self, step: ProvisioningStep) -> bool:
        """Whether ``step`` is at or before the last recorded step."""
        if not self.provisioning_step:
            return False
        return ProvisioningStep(self.provisioning_step).order >= step.order

    def __repr__(self) -> str:
        return (
            f"<Tenant(id={self.id}, slug={self.slug}, current_db={self.current_db})>"
        )
