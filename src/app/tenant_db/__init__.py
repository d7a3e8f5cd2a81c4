"""Schema, seed data and maintenance helpers for tenant databases."""

from app.tenant_db.models import Company, ExportTemplate, Location, Role, TenantBase, User
from app.tenant_db.seed import SeedAccount, SeedOptions, SeedResult, TenantSeeder


__all__ = [
    "Company",
    "ExportTemplate",
    "Location",
    "Role",
    "SeedAccount",
    "SeedOptions",
    "SeedResult",
    "TenantBase",
    "TenantSeeder",
    "User",
]
