"""initial_tenant_schema

Revision ID: 8b4e0d6a2c91
Revises:
Create Date: 2026-01-05 00:01:00.000000

Creates the tables every tenant database starts with:
companies, roles, users, export_templates, locations.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "8b4e0d6a2c91"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
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
    ]


def upgrade() -> None:
    """Upgrade database schema."""
    op.create_table(
        "companies",
        sa.Column("id", sa.String(length=100), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("industry", sa.String(length=100)),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("logo_url", sa.String(length=512)),
        sa.Column("favicon_url", sa.String(length=512)),
        sa.Column("pwa_icon_url", sa.String(length=512)),
        sa.Column("address", sa.Text()),
        sa.Column("city", sa.String(length=100)),
        sa.Column("state", sa.String(length=100)),
        sa.Column("postal_code", sa.String(length=20)),
        sa.Column("country", sa.String(length=100)),
        sa.Column("phone", sa.String(length=50)),
        sa.Column("email", sa.String(length=255)),
        sa.Column("website", sa.String(length=255)),
        sa.Column("description", sa.Text()),
        sa.Column("founded_year", sa.Integer()),
        sa.Column("employee_count", sa.Integer()),
        sa.Column("capital", sa.String(length=100)),
        sa.Column("tax_number", sa.String(length=50)),
        sa.Column("tax_office", sa.String(length=100)),
        sa.Column("registration_number", sa.String(length=100)),
        sa.Column("mersis_number", sa.String(length=50)),
        sa.Column("iban", sa.String(length=50)),
        sa.Column("bank_name", sa.String(length=100)),
        sa.Column("account_holder", sa.String(length=255)),
        *_timestamps(),
    )

    op.create_table(
        "roles",
        sa.Column("id", sa.String(length=100), primary_key=True),
        sa.Column("code", sa.String(length=50), nullable=False, unique=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.String(length=255)),
        sa.Column("permissions", sa.JSON(), nullable=False),
        sa.Column("is_system", sa.Boolean(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.String(length=100), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("username", sa.String(length=100), nullable=False, unique=True),
        sa.Column("email", sa.String(length=255), nullable=False, unique=True),
        sa.Column("password_hash", sa.Text(), nullable=False),
        sa.Column("role", sa.String(length=50), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("must_change_password", sa.Boolean(), nullable=False),
        sa.Column(
            "company_id",
            sa.String(length=100),
            sa.ForeignKey("companies.id", ondelete="SET NULL"),
            nullable=True,
        ),
        *_timestamps(),
    )

    op.create_table(
        "export_templates",
        sa.Column("id", sa.String(length=100), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("is_default", sa.Boolean(), nullable=False),
        sa.Column("company_name", sa.String(length=255), nullable=False),
        sa.Column("logo_url", sa.String(length=512)),
        sa.Column("favicon_url", sa.String(length=512)),
        sa.Column("address", sa.Text()),
        sa.Column("phone", sa.String(length=50)),
        sa.Column("email", sa.String(length=255)),
        sa.Column("website", sa.String(length=255)),
        sa.Column("tax_number", sa.String(length=50)),
        sa.Column("settings", sa.JSON()),
        *_timestamps(),
    )

    op.create_table(
        "locations",
        sa.Column("id", sa.String(length=100), primary_key=True),
        sa.Column(
            "company_id",
            sa.String(length=100),
            sa.ForeignKey("companies.id", ondelete="CASCADE"),
            nullable=True,
        ),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("code", sa.String(length=50)),
        sa.Column("type", sa.String(length=50), nullable=False),
        sa.Column("address", sa.Text()),
        sa.Column("city", sa.String(length=100)),
        sa.Column("country", sa.String(length=100)),
        sa.Column("postal_code", sa.String(length=20)),
        sa.Column("phone", sa.String(length=50)),
        sa.Column("email", sa.String(length=255)),
        sa.Column("latitude", sa.Float()),
        sa.Column("longitude", sa.Float()),
        sa.Column("description", sa.Text()),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
    )


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_table("locations")
    op.drop_table("export_templates")
    op.drop_table("users")
    op.drop_table("roles")
    op.drop_table("companies")
