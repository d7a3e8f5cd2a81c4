"""Audit logging for tenant lifecycle actions.

Provides:
- AuditLog model stored in the registry database
- AuditService for writing and purging entries
"""

from app.core.audit.models import AuditLog
from app.core.audit.service import AuditService, compute_changes


__all__ = [
    "AuditLog",
    "AuditService",
    "compute_changes",
]
