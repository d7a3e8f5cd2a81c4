"""create_tenant_registry

Revision ID: 3f1a9c2b7d10
Revises:
Create Date: 2026-01-05 00:01:00.000000

Creates the registry tables:
- tenants: one row per tenant with its yearly database generations
- tenant_audit_logs: lifecycle audit trail
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = "3f1a9c2b7d10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade database schema."""
    op.create_table(
        "tenants",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("slug", sa.String(length=50), nullable=False),
        sa.Column("subdomain", sa.String(length=255), nullable=True),
        sa.Column("custom_domain", sa.String(length=255), nullable=True),
        sa.Column("agency_id", sa.String(length=64), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("current_db", sa.String(length=63), nullable=False),
        sa.Column(
            "all_databases",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column("db_name", sa.String(length=63), nullable=False),
        sa.Column(
            "setup_failed",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
        ),
        sa.Column("provisioning_step", sa.String(length=40), nullable=True),
        sa.Column("metadata", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id", name="pk_tenants"),
        sa.UniqueConstraint("subdomain", name="uq_tenants_subdomain"),
        sa.UniqueConstraint("custom_domain", name="uq_tenants_custom_domain"),
    )
    op.create_index("ix_tenants_id", "tenants", ["id"])
    op.create_index("ix_tenants_name", "tenants", ["name"])
    op.create_index("ix_tenants_slug", "tenants", ["slug"], unique=True)
    op.create_index("ix_tenants_agency_id", "tenants", ["agency_id"])
    op.create_index("ix_tenants_status", "tenants", ["status"])

    op.create_table(
        "tenant_audit_logs",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("tenant_id", sa.Uuid(), nullable=True),
        sa.Column("tenant_slug", sa.String(length=50), nullable=False),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column("resource_type", sa.String(length=100), nullable=False),
        sa.Column("resource_id", sa.String(length=255), nullable=True),
        sa.Column("request_id", sa.String(length=64), nullable=True),
        sa.Column("changes", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("metadata", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.ForeignKeyConstraint(
            ["tenant_id"],
            ["tenants.id"],
            name="fk_tenant_audit_logs_tenant_id_tenants",
            ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_tenant_audit_logs"),
    )
    op.create_index("ix_tenant_audit_logs_id", "tenant_audit_logs", ["id"])
    op.create_index("ix_tenant_audit_logs_tenant_id", "tenant_audit_logs", ["tenant_id"])
    op.create_index("ix_tenant_audit_logs_tenant_slug", "tenant_audit_logs", ["tenant_slug"])
    op.create_index("ix_tenant_audit_logs_action", "tenant_audit_logs", ["action"])
    op.create_index("ix_tenant_audit_logs_request_id", "tenant_audit_logs", ["request_id"])
    op.create_index("ix_tenant_audit_logs_created_at", "tenant_audit_logs", ["created_at"])


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_table("tenant_audit_logs")
    op.drop_table("tenants")
