"""Tenant registry repository."""

from collections.abc import Awaitable, Callable
from typing import Any, TypeVar
from uuid import UUID

import structlog
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import DuplicateTenantError, RegistryError, TenantNotFoundError
from app.modules.tenants.models import ProvisioningStep, Tenant, TenantStatus


logger = structlog.get_logger()

T = TypeVar("T")

UPDATABLE_FIELDS = frozenset({"name", "subdomain", "custom_domain", "status", "metadata"})


class TenantRepository:
    """Repository for the tenant registry.

    Every write flushes immediately so uniqueness violations surface as
    ``DuplicateTenantError`` at the call site; other store failures become
    ``RegistryError``. Transaction boundaries belong to the caller.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def _guard(self, operation: Callable[[], Awaitable[T]], **context: Any) -> T:
        try:
            return await operation()
        except IntegrityError as e:
            await self.session.rollback()
            raise DuplicateTenantError(
                "Tenant slug, subdomain or custom domain already registered",
                details=context,
            ) from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error("tenant_registry_error", error=str(e), **context)
            raise RegistryError(details={"reason": str(e), **context}) from e

    async def create(
        self,
        name: str,
        slug: str,
        db_name: str,
        subdomain: str | None = None,
        custom_domain: str | None = None,
        agency_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Tenant:
        """Register a tenant whose first generation is ``db_name``.

        Raises:
            DuplicateTenantError: If the slug, subdomain or domain is taken
        """
        tenant = Tenant(
            name=name,
            slug=slug,
            subdomain=subdomain,
            custom_domain=custom_domain,
            agency_id=agency_id,
            status=TenantStatus.ACTIVE.value,
            current_db=db_name,
            all_databases=[db_name],
            db_name=db_name,
            setup_failed=False,
            provisioning_step=ProvisioningStep.REGISTERED.value,
            metadata_=metadata,
        )

        async def _create() -> Tenant:
            self.session.add(tenant)
            await self.session.flush()
            await self.session.refresh(tenant)
            return tenant

        return await self._guard(_create, slug=slug)

    async def _scalar(self, stmt: Any) -> Tenant | None:
        async def _run() -> Tenant | None:
            result = await self.session.execute(stmt)
            return result.scalar_one_or_none()

        return await self._guard(_run)

    async def get_by_id(self, tenant_id: UUID) -> Tenant | None:
        return await self._scalar(select(Tenant).where(Tenant.id == tenant_id))

    async def get_by_slug(self, slug: str) -> Tenant | None:
        return await self._scalar(select(Tenant).where(Tenant.slug == slug))

    async def get_by_subdomain(self, subdomain: str) -> Tenant | None:
        return await self._scalar(select(Tenant).where(Tenant.subdomain == subdomain))

    async def get_by_custom_domain(self, domain: str) -> Tenant | None:
        return await self._scalar(select(Tenant).where(Tenant.custom_domain == domain))

    async def get_or_raise(self, slug: str) -> Tenant:
        tenant = await self.get_by_slug(slug)
        if tenant is None:
            raise TenantNotFoundError(slug)
        return tenant

    async def list_tenants(
        self,
        agency_id: str | None = None,
        status: str | None = None,
        page: int = 1,
        page_size: int = 10,
    ) -> tuple[list[Tenant], int]:
        """List tenants, newest first.

        Returns:
            Tuple of (tenants, total count)
        """
        filters = []
        if agency_id:
            filters.append(Tenant.agency_id == agency_id)
        if status:
            filters.append(Tenant.status == status)

        async def _list() -> tuple[list[Tenant], int]:
            count_stmt = select(func.count()).select_from(Tenant).where(*filters)
            total = (await self.session.execute(count_stmt)).scalar_one()

            stmt = (
                select(Tenant)
                .where(*filters)
                .order_by(Tenant.created_at.desc(), Tenant.slug)
                .offset((page - 1) * page_size)
                .limit(page_size)
            )
            result = await self.session.execute(stmt)
            return list(result.scalars().all()), total

        return await self._guard(_list)

    async def list_active(self) -> list[Tenant]:
        async def _list() -> list[Tenant]:
            stmt = (
                select(Tenant)
                .where(Tenant.status == TenantStatus.ACTIVE.value)
                .order_by(Tenant.slug)
            )
            result = await self.session.execute(stmt)
            return list(result.scalars().all())

        return await self._guard(_list)

    async def update(self, tenant: Tenant, fields: dict[str, Any]) -> Tenant:
        """Apply field updates. Only name, subdomain, custom_domain, status
        and metadata may change.

        Raises:
            RegistryError: If a non-updatable field is given
            DuplicateTenantError: If a new subdomain or domain is taken
        """
        rejected = set(fields) - UPDATABLE_FIELDS
        if rejected:
            raise RegistryError(
                "Tenant fields cannot be updated",
                error_code="field_not_updatable",
                details={"fields": sorted(rejected)},
            )

        for key, value in fields.items():
            if key == "metadata":
                tenant.metadata_ = value
            elif isinstance(value, TenantStatus):
                setattr(tenant, key, value.value)
            else:
                setattr(tenant, key, value)

        return await self._flush(tenant)

    async def _flush(self, tenant: Tenant) -> Tenant:
        async def _run() -> Tenant:
            await self.session.flush()
            await self.session.refresh(tenant)
            return tenant

        return await self._guard(_run, slug=tenant.slug)

    async def append_database(self, tenant_id: UUID, db_name: str) -> Tenant:
        """Append a generation and make it current.

        The row is locked for the read-modify-write so two concurrent
        appends cannot lose each other's entry.

        Raises:
            TenantNotFoundError: If the tenant vanished
            DuplicateTenantError: If the database is already listed
        """

        async def _append() -> Tenant:
            stmt = select(Tenant).where(Tenant.id == tenant_id).with_for_update()
            result = await self.session.execute(stmt)
            tenant = result.scalar_one_or_none()
            if tenant is None:
                raise TenantNotFoundError(str(tenant_id))
            if db_name in tenant.all_databases:
                raise DuplicateTenantError(
                    f"Database '{db_name}' already registered for tenant",
                    error_code="generation_exists",
                    details={"slug": tenant.slug, "database": db_name},
                )
            # JSON columns only detect reassignment
            tenant.all_databases = [*tenant.all_databases, db_name]
            tenant.current_db = db_name
            tenant.db_name = db_name
            await self.session.flush()
            await self.session.refresh(tenant)
            return tenant

        return await self._guard(_append, database=db_name)

    async def set_status(self, tenant: Tenant, status: TenantStatus) -> Tenant:
        tenant.status = status.value
        if status is TenantStatus.ACTIVE:
            tenant.setup_failed = False
        return await self._flush(tenant)

    async def mark_setup_failed(self, tenant: Tenant) -> Tenant:
        tenant.setup_failed = True
        tenant.status = TenantStatus.SETUP_FAILED.value
        return await self._flush(tenant)

    async def clear_setup_failed(self, tenant: Tenant) -> Tenant:
        tenant.setup_failed = False
        return await self._flush(tenant)

    async def mark_step(self, tenant: Tenant, step: ProvisioningStep) -> Tenant:
        tenant.provisioning_step = step.value
        return await self._flush(tenant)

    async def delete(self, tenant: Tenant) -> None:
        async def _delete() -> None:
            await self.session.delete(tenant)
            await self.session.flush()

        await self._guard(_delete, slug=tenant.slug)
