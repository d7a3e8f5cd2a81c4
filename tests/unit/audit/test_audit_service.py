"""Tests for audit logging service."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from app.core.audit.models import AuditLog
from app.core.audit.service import AuditService, compute_changes


class TestAuditService:
    """Tests for AuditService."""

    @pytest.fixture
    def mock_session(self):
        """Create a mock database session."""
        session = AsyncMock()
        session.add = MagicMock()
        session.flush = AsyncMock()
        return session

    @pytest.mark.asyncio
    async def test_log_basic(self, mock_session):
        """Test creating a basic audit log entry."""
        service = AuditService(session=mock_session, request_id="req-123")
        tenant_id = uuid4()

        entry = await service.log(
            "tenant.rotated",
            tenant_slug="acme",
            tenant_id=tenant_id,
            resource_type="database",
            resource_id="tenant_acme_2026",
        )

        mock_session.add.assert_called_once_with(entry)
        mock_session.flush.assert_awaited_once()
        assert entry.tenant_id == tenant_id
        assert entry.request_id == "req-123"
        assert entry.resource_id == "tenant_acme_2026"

    @pytest.mark.asyncio
    async def test_log_disabled(self, mock_session):
        """Test that a disabled service writes nothing."""
        service = AuditService(session=mock_session, enabled=False)

        entry = await service.log("tenant.created", tenant_slug="acme")

        assert entry is None
        mock_session.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_purge_removes_old_entries(self, session_factory):
        """Test that purge keeps entries inside the retention window."""
        now = datetime.now(UTC)

        async with session_factory() as session, session.begin():
            session.add_all(
                [
                    AuditLog(
                        tenant_slug="acme",
                        action="tenant.created",
                        resource_type="tenant",
                        created_at=now - timedelta(days=400),
                    ),
                    AuditLog(
                        tenant_slug="acme",
                        action="tenant.rotated",
                        resource_type="database",
                        created_at=now - timedelta(days=10),
                    ),
                ]
            )

        async with session_factory() as session, session.begin():
            deleted = await AuditService(session).purge(365, now=now)

        async with session_factory() as session:
            remaining = await session.scalar(select(func.count()).select_from(AuditLog))

        assert deleted == 1
        assert remaining == 1


class TestComputeChanges:
    """Tests for compute_changes."""

    def test_only_changed_fields(self):
        changes = compute_changes(
            {"name": "Old", "status": "active"},
            {"name": "New", "status": "active"},
        )

        assert changes == {"name": {"old": "Old", "new": "New"}}

    def test_no_changes(self):
        assert compute_changes({"name": "A"}, {"name": "A"}) == {}
