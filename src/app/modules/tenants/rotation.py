"""Yearly rotation of tenant databases.

Rotation adds a new database generation to a tenant and points traffic at
it. The previous generation keeps running as-is and stays reachable for
historical reads; no data is carried over.
"""

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config import Settings
from app.core.errors import DuplicateGenerationError, MigrationFailed, ProvisioningError
from app.core.tenancy.admin import DatabaseAdmin
from app.core.tenancy.naming import current_year, tenant_database_name, tenant_database_url
from app.core.tenancy.router import ConnectionRouter
from app.modules.tenants.models import Tenant
from app.modules.tenants.repos import TenantRepository


logger = structlog.get_logger()


class RotationWorkflow:
    """Create, migrate and register the next database generation."""

    def __init__(
        self,
        settings: Settings,
        session_factory: async_sessionmaker[AsyncSession],
        admin: DatabaseAdmin,
        router: ConnectionRouter,
    ) -> None:
        self.settings = settings
        self.session_factory = session_factory
        self.admin = admin
        self.router = router

    async def rotate(self, slug: str, year: int | None = None) -> Tenant:
        """Rotate a tenant to the generation for ``year``.

        Args:
            slug: Tenant slug
            year: Target year; defaults to next calendar year

        Returns:
            The tenant with the new generation appended and current

        Raises:
            TenantNotFoundError: If the tenant does not exist
            DuplicateGenerationError: If the tenant already has that
                generation; nothing is created in that case
            DatabaseCreateFailed: If the database could not be created
            MigrationFailed: If migrations fail; the new database is
                dropped and the registry is left untouched
        """
        async with self.session_factory() as session:
            tenant = await TenantRepository(session).get_or_raise(slug)

        target_year = year or current_year() + 1
        new_db = tenant_database_name(slug, target_year, self.settings.tenant_db_name_pattern)
        log = logger.bind(tenant_slug=slug, database=new_db, previous=tenant.current_db)

        if new_db in tenant.all_databases:
            log.warning("tenant_rotation_rejected", reason="generation_exists")
            raise DuplicateGenerationError(
                f"Tenant '{slug}' already has database '{new_db}'",
                details={"slug": slug, "database": new_db, "year": target_year},
            )

        log.info("tenant_rotation_started", year=target_year)

        url = tenant_database_url(self.settings.tenant_database_url_template, new_db)
        await self.admin.create_database(new_db)

        try:
            await self.admin.run_migrations(url)
        except Exception as e:
            log.error("tenant_rotation_migration_failed", error=str(e))
            await self.router.clear(url)
            try:
                await self.admin.drop_database(new_db)
            except ProvisioningError as drop_error:
                log.error("tenant_database_drop_failed", error=drop_error.message)
            if isinstance(e, MigrationFailed):
                raise
            raise MigrationFailed(
                f"Migrations failed for '{new_db}'",
                database=new_db,
                details={"reason": str(e)},
            ) from e

        async with self.session_factory() as session, session.begin():
            tenant = await TenantRepository(session).append_database(tenant.id, new_db)

        log.info("tenant_rotation_completed", all_databases=tenant.all_databases)
        return tenant
