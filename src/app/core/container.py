"""Composition root.

``Platform`` owns every long-lived resource (registry engine, connection
router, database admin, storage) and is built once per process from a
``Settings`` instance. The web app keeps it on ``app.state.platform``;
the CLI and the worker build their own.
"""

from dataclasses import dataclass

import structlog
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from app.config import Settings
from app.core.database.session import create_registry_engine, create_session_factory
from app.core.tenancy.admin import DatabaseAdmin, PostgresDatabaseAdmin
from app.core.tenancy.resolver import TenantResolver
from app.core.tenancy.router import ConnectionRouter
from app.core.tenancy.storage import StorageBackend, create_storage
from app.modules.tenants.provisioning import ProvisioningWorkflow
from app.modules.tenants.rotation import RotationWorkflow
from app.modules.tenants.services import TenantService
from app.tenant_db.seed import TenantSeeder


logger = structlog.get_logger()


@dataclass
class Platform:
    settings: Settings
    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]
    router: ConnectionRouter
    admin: DatabaseAdmin
    storage: StorageBackend
    resolver: TenantResolver

    @classmethod
    def from_settings(cls, settings: Settings) -> "Platform":
        engine = create_registry_engine(settings)
        router = ConnectionRouter(
            pool_size=settings.tenant_pool_size,
            max_overflow=settings.tenant_max_overflow,
            echo=settings.database_echo,
        )
        return cls(
            settings=settings,
            engine=engine,
            session_factory=create_session_factory(engine),
            router=router,
            admin=PostgresDatabaseAdmin(
                settings.admin_database_url,
                settings.alembic_config,
                settings.tenant_migrations_section,
                router=router,
            ),
            storage=create_storage(settings),
            resolver=TenantResolver.from_settings(settings),
        )

    def tenant_service(self) -> TenantService:
        provisioning = ProvisioningWorkflow(
            settings=self.settings,
            session_factory=self.session_factory,
            admin=self.admin,
            seeder=TenantSeeder(self.router),
            storage=self.storage,
            router=self.router,
        )
        rotation = RotationWorkflow(
            settings=self.settings,
            session_factory=self.session_factory,
            admin=self.admin,
            router=self.router,
        )
        return TenantService(
            settings=self.settings,
            session_factory=self.session_factory,
            admin=self.admin,
            router=self.router,
            provisioning=provisioning,
            rotation=rotation,
        )

    async def aclose(self) -> None:
        """Dispose every engine owned by the platform."""
        await self.router.clear()
        dispose = getattr(self.admin, "dispose", None)
        if dispose is not None:
            await dispose()
        await self.engine.dispose()
        logger.info("platform_closed")
