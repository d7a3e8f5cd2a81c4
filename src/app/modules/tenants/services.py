"""Tenant service: the operations exposed over HTTP, the CLI and jobs."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config import Settings
from app.core.audit import AuditService, compute_changes
from app.core.errors import AppException, ProvisioningError
from app.core.security import generate_password
from app.core.tenancy.admin import DatabaseAdmin
from app.core.tenancy.naming import tenant_database_url, year_from_database_name
from app.core.tenancy.router import ConnectionRouter
from app.modules.tenants.models import Tenant, TenantStatus
from app.modules.tenants.provisioning import ProvisioningWorkflow
from app.modules.tenants.repos import TenantRepository
from app.modules.tenants.rotation import RotationWorkflow
from app.modules.tenants.schemas import (
    DatabaseInfo,
    ProvisioningResult,
    SyncOutcome,
    SyncReport,
    TenantCreate,
    TenantListParams,
    TenantUpdate,
    UserMatch,
)
from app.tenant_db import enrichment
from app.tenant_db.seed import ROLE_SUPER_ADMIN, SeedAccount


logger = structlog.get_logger()


def _snapshot(tenant: Tenant) -> dict[str, Any]:
    return {
        "name": tenant.name,
        "subdomain": tenant.subdomain,
        "custom_domain": tenant.custom_domain,
        "status": tenant.status,
        "metadata": tenant.metadata_,
    }


class TenantService:
    """Facade over the registry, the workflows and tenant databases.

    Each operation runs its registry reads and writes in a transaction of
    its own; audit entries are written with the change they describe.
    """

    def __init__(
        self,
        settings: Settings,
        session_factory: async_sessionmaker[AsyncSession],
        admin: DatabaseAdmin,
        router: ConnectionRouter,
        provisioning: ProvisioningWorkflow,
        rotation: RotationWorkflow,
    ) -> None:
        self.settings = settings
        self.session_factory = session_factory
        self.admin = admin
        self.router = router
        self.provisioning = provisioning
        self.rotation = rotation

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[tuple[TenantRepository, AuditService]]:
        request_id = structlog.contextvars.get_contextvars().get("request_id")
        async with self.session_factory() as session, session.begin():
            yield (
                TenantRepository(session),
                AuditService(
                    session,
                    enabled=self.settings.audit_log_enabled,
                    request_id=request_id,
                ),
            )

    def database_url(self, db_name: str) -> str:
        return tenant_database_url(self.settings.tenant_database_url_template, db_name)

    # ============================================================
    # Lifecycle
    # ============================================================

    async def create_tenant(self, request: TenantCreate) -> ProvisioningResult:
        """Provision a new tenant.

        Raises:
            DuplicateTenantError: If the slug or a domain is taken
            ProvisioningError: If the database could not be created or
                migrated; the tenant row stays with ``setup_failed``
        """
        try:
            result = await self.provisioning.provision(request)
        except ProvisioningError as e:
            async with self._transaction() as (repo, audit):
                tenant = await repo.get_by_slug(request.slug or "")
                await audit.log(
                    "tenant.setup_failed",
                    tenant_slug=request.slug or "",
                    tenant_id=tenant.id if tenant else None,
                    metadata={"error_code": e.error_code, **e.details},
                )
            raise

        async with self._transaction() as (_, audit):
            await audit.log(
                "tenant.created",
                tenant_slug=result.tenant.slug,
                tenant_id=result.tenant.id,
                resource_type="database",
                resource_id=result.tenant.current_db,
                metadata={"enrichment_failures": result.enrichment_failures},
            )
        return result

    async def setup_tenant_database(
        self, slug: str, resume: bool = False
    ) -> ProvisioningResult:
        """Re-provision a tenant's current database."""
        result = await self.provisioning.setup(slug, resume=resume)
        async with self._transaction() as (_, audit):
            await audit.log(
                "tenant.setup",
                tenant_slug=slug,
                tenant_id=result.tenant.id,
                resource_type="database",
                resource_id=result.tenant.current_db,
                metadata={
                    "resume": resume,
                    "enrichment_failures": result.enrichment_failures,
                },
            )
        return result

    async def rotate_year(self, slug: str, year: int | None = None) -> Tenant:
        """Add the next yearly generation and make it current."""
        tenant = await self.rotation.rotate(slug, year)
        previous = tenant.all_databases[-2] if len(tenant.all_databases) > 1 else None
        async with self._transaction() as (_, audit):
            await audit.log(
                "tenant.rotated",
                tenant_slug=slug,
                tenant_id=tenant.id,
                resource_type="database",
                resource_id=tenant.current_db,
                changes={"current_db": {"old": previous, "new": tenant.current_db}},
            )
        return tenant

    async def get_tenant(self, slug: str) -> Tenant:
        async with self._transaction() as (repo, _):
            return await repo.get_or_raise(slug)

    async def list_tenants(
        self, params: TenantListParams | None = None
    ) -> tuple[list[Tenant], int]:
        params = params or TenantListParams()
        async with self._transaction() as (repo, _):
            return await repo.list_tenants(
                agency_id=params.agency_id,
                status=params.status.value if params.status else None,
                page=params.page,
                page_size=params.page_size,
            )

    async def update_tenant(self, slug: str, data: TenantUpdate) -> Tenant:
        """Update mutable tenant fields.

        Raises:
            TenantNotFoundError: If the tenant does not exist
            DuplicateTenantError: If a new subdomain or domain is taken
        """
        fields = data.model_dump(exclude_unset=True)
        # name and status cannot be cleared
        fields = {
            key: value
            for key, value in fields.items()
            if value is not None or key not in ("name", "status")
        }
        if "status" in fields:
            fields["status"] = TenantStatus(fields["status"]).value

        async with self._transaction() as (repo, audit):
            tenant = await repo.get_or_raise(slug)
            before = _snapshot(tenant)
            tenant = await repo.update(tenant, fields)
            changes = compute_changes(before, _snapshot(tenant))
            if changes:
                await audit.log(
                    "tenant.updated",
                    tenant_slug=slug,
                    tenant_id=tenant.id,
                    resource_id=str(tenant.id),
                    changes=changes,
                )
            return tenant

    async def delete_tenant(self, slug: str, hard: bool = True) -> None:
        """Delete a tenant.

        A soft delete only marks the tenant inactive. A hard delete drops
        every database generation and then removes the registry row; if a
        drop fails the row is kept so the delete can be retried.
        """
        if not hard:
            async with self._transaction() as (repo, audit):
                tenant = await repo.get_or_raise(slug)
                await repo.set_status(tenant, TenantStatus.INACTIVE)
                await audit.log("tenant.deactivated", tenant_slug=slug, tenant_id=tenant.id)
            logger.info("tenant_deactivated", tenant_slug=slug)
            return

        tenant = await self.get_tenant(slug)
        for db_name in tenant.all_databases:
            await self.router.clear(self.database_url(db_name))
            await self.admin.drop_database(db_name)

        async with self._transaction() as (repo, audit):
            tenant = await repo.get_or_raise(slug)
            dropped = list(tenant.all_databases)
            await repo.delete(tenant)
            await audit.log(
                "tenant.deleted",
                tenant_slug=slug,
                metadata={"dropped_databases": dropped},
            )
        logger.info("tenant_deleted", tenant_slug=slug, dropped_databases=dropped)

    # ============================================================
    # Queries and maintenance
    # ============================================================

    async def list_databases(self, slug: str | None = None) -> list[DatabaseInfo]:
        """List every database generation of one tenant, or of all tenants."""
        if slug:
            tenants = [await self.get_tenant(slug)]
        else:
            tenants = []
            page = 1
            while True:
                batch, total = await self.list_tenants(
                    TenantListParams(page=page, page_size=100)
                )
                tenants.extend(batch)
                if len(tenants) >= total or not batch:
                    break
                page += 1

        return [
            DatabaseInfo(
                tenant_slug=tenant.slug,
                database=db_name,
                year=year_from_database_name(db_name),
                is_current=db_name == tenant.current_db,
            )
            for tenant in tenants
            for db_name in tenant.all_databases
        ]

    async def _active_tenants(self) -> list[Tenant]:
        async with self._transaction() as (repo, _):
            return await repo.list_active()

    async def find_user(self, identifier: str) -> list[UserMatch]:
        """Search every active tenant's current database for a user.

        Tenants whose database cannot be queried are logged and skipped.
        """
        matches: list[UserMatch] = []
        for tenant in await self._active_tenants():
            try:
                engine = self.router.get(self.database_url(tenant.current_db))
                users = await enrichment.find_users(engine, identifier)
            except (SQLAlchemyError, AppException, OSError) as e:
                logger.warning(
                    "tenant_user_search_failed",
                    tenant_slug=tenant.slug,
                    database=tenant.current_db,
                    error=str(e),
                )
                continue

            matches.extend(
                UserMatch(
                    tenant_slug=tenant.slug,
                    database=tenant.current_db,
                    user_id=user.id,
                    email=user.email,
                    username=user.username,
                    role=user.role,
                    status=user.status,
                )
                for user in users
            )
        return matches

    async def sync_super_admin(self) -> SyncReport:
        """Create or refresh the configured super admin in every active tenant.

        When ``SUPER_ADMIN_PASSWORD`` is set every account gets that password.
        Otherwise a password is generated once for the whole sync, applied
        only to accounts this sync creates, and returned in the report.
        Existing accounts keep their password.
        """
        configured = self.settings.super_admin_password
        password = configured or generate_password()
        account = SeedAccount(
            email=self.settings.super_admin_email,
            username=self.settings.super_admin_username,
            password=password,
            name="Super Admin",
            role=ROLE_SUPER_ADMIN,
            must_change_password=configured is None,
        )
        report = SyncReport(
            email=account.email,
            username=account.username,
            password=None if configured else password,
        )

        for tenant in await self._active_tenants():
            try:
                engine = self.router.get(self.database_url(tenant.current_db))
                _, created = await enrichment.upsert_super_admin(
                    engine, account, reset_password=configured is not None
                )
            except (SQLAlchemyError, AppException, OSError) as e:
                logger.warning(
                    "super_admin_sync_failed",
                    tenant_slug=tenant.slug,
                    error=str(e),
                )
                report.outcomes.append(
                    SyncOutcome(tenant_slug=tenant.slug, ok=False, error=str(e))
                )
                continue
            report.outcomes.append(
                SyncOutcome(tenant_slug=tenant.slug, ok=True, created=created)
            )

        if configured is None and not any(o.created for o in report.outcomes):
            report.password = None

        logger.info(
            "super_admin_synced",
            tenants=len(report.outcomes),
            failed=report.failed,
        )
        return report
