"""Tenants module: registry, provisioning, rotation and admin API."""

from fastapi import APIRouter


router = APIRouter(prefix="/tenants", tags=["tenants"])

# Import routes to register them (must be after router is defined)
from app.modules.tenants import routes  # noqa: F401, E402


# Module metadata
__module_info__ = {
    "name": "tenants",
    "version": "1.0.0",
    "description": "Tenant lifecycle and database provisioning",
    "dependencies": [],
}
