"""Administrative operations on physical tenant databases.

Creating and dropping databases needs a connection to the server's
maintenance database outside of any transaction. Identifiers are validated
and quoted by the dialect; nothing is passed through a shell.
"""

import asyncio
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

import structlog
from alembic import command
from alembic.config import Config
from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from app.core.errors import DatabaseCreateFailed, MigrationFailed, ProvisioningError
from app.core.tenancy.naming import validate_database_name
from app.tenant_db.models import TenantBase


if TYPE_CHECKING:
    from app.core.tenancy.router import ConnectionRouter


logger = structlog.get_logger()


class CreateOutcome(str, Enum):
    """Result of a create-database request."""

    CREATED = "created"
    ALREADY_EXISTS = "already_exists"


class DatabaseAdmin(Protocol):
    """Operations the provisioning and rotation workflows need from the server."""

    async def create_database(self, name: str) -> CreateOutcome: ...

    async def drop_database(self, name: str) -> None: ...

    async def database_exists(self, name: str) -> bool: ...

    async def run_migrations(self, url: str) -> None: ...

    async def run_schema_sync(self, url: str) -> None: ...


def _is_duplicate_database(error: DBAPIError) -> bool:
    # 42P04 is duplicate_database
    code = getattr(error.orig, "sqlstate", None) or getattr(error.orig, "pgcode", None)
    return code == "42P04" or "already exists" in str(error.orig).lower()


class PostgresDatabaseAdmin:
    """DatabaseAdmin backed by PostgreSQL and Alembic.

    Attributes:
        admin_url: URL of a maintenance database (usually ``postgres``)
        alembic_config: Path to ``alembic.ini``
        migrations_section: Ini section holding the tenant migration tree
    """

    def __init__(
        self,
        admin_url: str,
        alembic_config: Path | str,
        migrations_section: str = "tenant",
        router: "ConnectionRouter | None" = None,
    ) -> None:
        self.admin_url = admin_url
        self.alembic_config = Path(alembic_config)
        self.migrations_section = migrations_section
        self.router = router
        self._engine: AsyncEngine | None = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            self._engine = create_async_engine(
                self.admin_url,
                isolation_level="AUTOCOMMIT",
                pool_pre_ping=True,
            )
        return self._engine

    def _quote(self, name: str) -> str:
        validate_database_name(name)
        return self.engine.dialect.identifier_preparer.quote_identifier(name)

    async def database_exists(self, name: str) -> bool:
        async with self.engine.connect() as conn:
            result = await conn.execute(
                text("SELECT 1 FROM pg_database WHERE datname = :name"),
                {"name": name},
            )
            return result.scalar_one_or_none() is not None

    async def create_database(self, name: str) -> CreateOutcome:
        """Create a database, treating an existing one as success.

        Raises:
            DatabaseCreateFailed: For any failure other than "already exists"
        """
        statement = f"CREATE DATABASE {self._quote(name)}"

        try:
            if await self.database_exists(name):
                logger.info("tenant_database_exists", database=name)
                return CreateOutcome.ALREADY_EXISTS

            async with self.engine.connect() as conn:
                await conn.execute(text(statement))
        except DBAPIError as e:
            if _is_duplicate_database(e):
                logger.info("tenant_database_exists", database=name)
                return CreateOutcome.ALREADY_EXISTS
            raise DatabaseCreateFailed(
                f"Could not create database '{name}'",
                database=name,
                details={"reason": str(e.orig)},
            ) from e
        except OSError as e:
            raise DatabaseCreateFailed(
                f"Database server unreachable while creating '{name}'",
                database=name,
                details={"reason": str(e)},
            ) from e

        logger.info("tenant_database_created", database=name)
        return CreateOutcome.CREATED

    async def drop_database(self, name: str) -> None:
        """Drop a database if it exists.

        Raises:
            ProvisioningError: If the server refuses the drop
        """
        statement = f"DROP DATABASE IF EXISTS {self._quote(name)}"
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text(statement))
        except (DBAPIError, OSError) as e:
            raise ProvisioningError(
                f"Could not drop database '{name}'",
                database=name,
                error_code="database_drop_failed",
            ) from e

        logger.info("tenant_database_dropped", database=name)

    def _alembic_config(self, url: str) -> Config:
        cfg = Config(str(self.alembic_config), ini_section=self.migrations_section)
        cfg.attributes["connection_url"] = url
        return cfg

    async def run_migrations(self, url: str) -> None:
        """Upgrade a tenant database to the head of the tenant migration tree.

        Raises:
            MigrationFailed: If any migration fails
        """
        cfg = self._alembic_config(url)
        try:
            await asyncio.to_thread(command.upgrade, cfg, "head")
        except Exception as e:
            raise MigrationFailed(
                "Tenant migrations failed",
                details={"reason": str(e)},
            ) from e

    async def run_schema_sync(self, url: str) -> None:
        """Create any tenant table missing from the migrated schema."""
        if self.router is not None:
            engine = self.router.get(url)
            async with engine.begin() as conn:
                await conn.run_sync(TenantBase.metadata.create_all)
            return

        engine = create_async_engine(url)
        try:
            async with engine.begin() as conn:
                await conn.run_sync(TenantBase.metadata.create_all)
        finally:
            await engine.dispose()

    async def dispose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None


__all__ = [
    "CreateOutcome",
    "DatabaseAdmin",
    "PostgresDatabaseAdmin",
]

