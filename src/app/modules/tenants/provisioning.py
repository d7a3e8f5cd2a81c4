"""Tenant database provisioning workflow.

Provisioning is a sequence of named steps. Everything up to and including
migrations must succeed; later steps enrich the tenant and are allowed to
fail one by one without aborting the run:

    registered -> database_created -> migrated            (fatal on failure)
    schema_synced -> seeded -> storage_ready -> assets_uploaded
    -> company_profile_applied -> export_template_created
    -> location_created -> completed                      (best effort)

The last step completed without any failure before it is persisted on the
tenant row, so ``setup(slug, resume=True)`` continues where a crashed or
partially failed run stopped.
"""

from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config import Settings
from app.core.errors import EnrichmentFailed, MigrationFailed, ProvisioningError
from app.core.security import generate_password
from app.core.tenancy.admin import DatabaseAdmin
from app.core.tenancy.naming import (
    current_year,
    tenant_database_name,
    tenant_database_url,
    validate_slug,
)
from app.core.tenancy.router import ConnectionRouter
from app.core.tenancy.storage import StorageBackend
from app.modules.tenants.models import ProvisioningStep, Tenant, TenantStatus
from app.modules.tenants.repos import TenantRepository
from app.modules.tenants.schemas import (
    AccountCredentials,
    AssetUpload,
    Credentials,
    ProvisionedTenant,
    ProvisioningResult,
    TenantCreate,
)
from app.tenant_db import enrichment
from app.tenant_db.seed import (
    ROLE_AGENCY_USER,
    ROLE_CLIENT_USER,
    ROLE_SUPER_ADMIN,
    SeedAccount,
    SeedOptions,
    TenantSeeder,
    default_company_id,
)


logger = structlog.get_logger()


@dataclass
class _Run:
    """Mutable state of one provisioning run."""

    tenant_id: UUID
    slug: str
    name: str
    subdomain: str | None
    db_name: str
    url: str
    request: TenantCreate | None
    accounts: dict[str, SeedAccount] | None = None
    company_id: str | None = None
    export_template_id: str | None = None
    location_id: str | None = None
    asset_urls: dict[str, str] = field(default_factory=dict)
    failures: list[str] = field(default_factory=list)


Step = Callable[[_Run], Awaitable[None]]


class ProvisioningWorkflow:
    """Turns a registry row into a migrated, seeded tenant database.

    Registry writes use short transactions of their own so that progress
    and failure markers survive even when a later step raises.
    """

    def __init__(
        self,
        settings: Settings,
        session_factory: async_sessionmaker[AsyncSession],
        admin: DatabaseAdmin,
        seeder: TenantSeeder,
        storage: StorageBackend,
        router: ConnectionRouter,
    ) -> None:
        self.settings = settings
        self.session_factory = session_factory
        self.admin = admin
        self.seeder = seeder
        self.storage = storage
        self.router = router

    @asynccontextmanager
    async def _registry(self) -> AsyncIterator[TenantRepository]:
        async with self.session_factory() as session, session.begin():
            yield TenantRepository(session)

    def database_url(self, db_name: str) -> str:
        return tenant_database_url(self.settings.tenant_database_url_template, db_name)

    def access_url(self, slug: str, subdomain: str | None) -> str:
        if subdomain:
            return f"https://{subdomain}.{self.settings.production_domain}"
        return f"{self.settings.tenant_path_prefix}/{slug}"

    # ------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------

    async def provision(self, request: TenantCreate) -> ProvisioningResult:
        """Register a tenant and provision its first database generation.

        Raises:
            DuplicateTenantError: If the slug or a domain is already taken
            DatabaseCreateFailed: If the database could not be created
            MigrationFailed: If the schema could not be applied; the tenant
                is left in ``setup_failed`` and the database is dropped
        """
        slug = validate_slug(request.slug or "")
        year = request.year or current_year()
        db_name = tenant_database_name(slug, year, self.settings.tenant_db_name_pattern)

        logger.info("tenant_provisioning_started", tenant_slug=slug, database=db_name)

        async with self._registry() as repo:
            tenant = await repo.create(
                name=request.name,
                slug=slug,
                db_name=db_name,
                subdomain=request.subdomain,
                custom_domain=request.custom_domain,
                agency_id=request.agency_id,
            )

        return await self._run(tenant, request, resume=False)

    async def setup(
        self,
        slug: str,
        resume: bool = False,
        request: TenantCreate | None = None,
    ) -> ProvisioningResult:
        """Re-provision an existing tenant against its current database.

        Every step is idempotent, so a plain re-run is safe. With
        ``resume`` the steps already recorded on the tenant are skipped.
        On success a tenant in ``setup_failed`` is active again; any other
        status is left as it was.
        """
        async with self._registry() as repo:
            tenant = await repo.get_or_raise(slug)

        logger.info(
            "tenant_setup_started",
            tenant_slug=slug,
            database=tenant.current_db,
            resume=resume,
            last_step=tenant.provisioning_step,
        )
        result = await self._run(tenant, request, resume=resume)

        async with self._registry() as repo:
            tenant = await repo.get_or_raise(slug)
            if tenant.status == TenantStatus.SETUP_FAILED.value:
                await repo.set_status(tenant, TenantStatus.ACTIVE)
            elif tenant.setup_failed:
                await repo.clear_setup_failed(tenant)

        return result

    # ------------------------------------------------------------
    # Step runner
    # ------------------------------------------------------------

    def _steps(self) -> list[tuple[ProvisioningStep, Step, bool]]:
        """(step, handler, fatal) in execution order."""
        return [
            (ProvisioningStep.DATABASE_CREATED, self._create_database, True),
            (ProvisioningStep.MIGRATED, self._migrate, True),
            (ProvisioningStep.SCHEMA_SYNCED, self._sync_schema, False),
            (ProvisioningStep.SEEDED, self._seed, False),
            (ProvisioningStep.STORAGE_READY, self._create_storage, False),
            (ProvisioningStep.ASSETS_UPLOADED, self._upload_assets, False),
            (ProvisioningStep.COMPANY_PROFILE_APPLIED, self._apply_company_profile, False),
            (ProvisioningStep.EXPORT_TEMPLATE_CREATED, self._create_export_template, False),
            (ProvisioningStep.LOCATION_CREATED, self._create_location, False),
        ]

    async def _run(
        self,
        tenant: Tenant,
        request: TenantCreate | None,
        resume: bool,
    ) -> ProvisioningResult:
        run = _Run(
            tenant_id=tenant.id,
            slug=tenant.slug,
            name=tenant.name,
            subdomain=tenant.subdomain,
            db_name=tenant.current_db,
            url=self.database_url(tenant.current_db),
            request=request,
        )
        if resume and tenant.has_completed(ProvisioningStep.SEEDED):
            run.company_id = default_company_id(run.slug)

        log = logger.bind(tenant_slug=run.slug, database=run.db_name)
        clean = True

        for step, handler, fatal in self._steps():
            if resume and tenant.has_completed(step):
                log.info("tenant_provisioning_step_skipped", step=step.value)
                continue

            if fatal:
                await handler(run)
            else:
                try:
                    await handler(run)
                except Exception as e:
                    clean = False
                    self._record_failure(run, step.value, e)
                    continue

            if clean:
                await self._mark_step(run.tenant_id, step)

        if clean:
            await self._mark_step(run.tenant_id, ProvisioningStep.COMPLETED)

        log.info(
            "tenant_provisioning_completed",
            enrichment_failures=run.failures,
        )
        return self._result(run)

    def _record_failure(self, run: _Run, step: str, error: Exception) -> None:
        failure = EnrichmentFailed(
            f"Provisioning step '{step}' failed",
            database=run.db_name,
            step=step,
            details={"reason": str(error)},
        )
        logger.warning(
            "tenant_enrichment_failed",
            tenant_slug=run.slug,
            database=run.db_name,
            step=step,
            error=str(error),
            error_code=failure.error_code,
        )
        run.failures.append(step)

    async def _mark_step(self, tenant_id: UUID, step: ProvisioningStep) -> None:
        async with self._registry() as repo:
            tenant = await repo.get_by_id(tenant_id)
            if tenant is not None:
                await repo.mark_step(tenant, step)

    async def _mark_failed(self, run: _Run) -> None:
        async with self._registry() as repo:
            tenant = await repo.get_by_id(run.tenant_id)
            if tenant is not None:
                await repo.mark_setup_failed(tenant)

    def _result(self, run: _Run) -> ProvisioningResult:
        credentials = None
        if run.accounts is not None:
            credentials = Credentials(
                access_url=self.access_url(run.slug, run.subdomain),
                **{
                    key: AccountCredentials(
                        email=account.email,
                        username=account.username,
                        password=account.password,
                    )
                    for key, account in run.accounts.items()
                },
            )

        return ProvisioningResult(
            tenant=ProvisionedTenant(
                id=run.tenant_id,
                slug=run.slug,
                name=run.name,
                db_name=run.db_name,
                current_db=run.db_name,
            ),
            database_url=run.url,
            credentials=credentials,
            company_id=(
                None
                if ProvisioningStep.COMPANY_PROFILE_APPLIED.value in run.failures
                else run.company_id
            ),
            export_template_id=run.export_template_id,
            location_id=run.location_id,
            logo_url=run.asset_urls.get("logo"),
            favicon_url=run.asset_urls.get("favicon"),
            pwa_icon_url=run.asset_urls.get("pwa_icon"),
            enrichment_failures=run.failures,
        )

    # ------------------------------------------------------------
    # Fatal steps
    # ------------------------------------------------------------

    async def _create_database(self, run: _Run) -> None:
        try:
            await self.admin.create_database(run.db_name)
        except ProvisioningError as e:
            logger.error(
                "tenant_database_create_failed",
                tenant_slug=run.slug,
                database=run.db_name,
                error=e.message,
            )
            await self._mark_failed(run)
            raise

    async def _migrate(self, run: _Run) -> None:
        try:
            await self.admin.run_migrations(run.url)
        except Exception as e:
            logger.error(
                "tenant_migration_failed",
                tenant_slug=run.slug,
                database=run.db_name,
                error=str(e),
            )
            await self._mark_failed(run)
            await self.router.clear(run.url)
            try:
                await self.admin.drop_database(run.db_name)
            except ProvisioningError as drop_error:
                logger.error(
                    "tenant_database_drop_failed",
                    tenant_slug=run.slug,
                    database=run.db_name,
                    error=drop_error.message,
                )
            else:
                # database is gone, a resumed run has to create it again
                await self._mark_step(run.tenant_id, ProvisioningStep.REGISTERED)
            if isinstance(e, MigrationFailed):
                raise
            raise MigrationFailed(
                f"Migrations failed for '{run.db_name}'",
                database=run.db_name,
                step=ProvisioningStep.MIGRATED.value,
                details={"reason": str(e)},
            ) from e

    # ------------------------------------------------------------
    # Best-effort steps
    # ------------------------------------------------------------

    async def _sync_schema(self, run: _Run) -> None:
        await self.admin.run_schema_sync(run.url)

    def _accounts(self, run: _Run) -> dict[str, SeedAccount]:
        configured = self.settings.super_admin_password
        return {
            "super_admin": SeedAccount(
                email=self.settings.super_admin_email,
                username=self.settings.super_admin_username,
                password=configured or generate_password(),
                name="Super Admin",
                role=ROLE_SUPER_ADMIN,
                must_change_password=configured is None,
            ),
            "tenant_admin": SeedAccount(
                email=f"admin@{run.slug}.com",
                username="admin",
                password=generate_password(),
                name="Admin User",
                role=ROLE_AGENCY_USER,
            ),
            "default_user": SeedAccount(
                email=f"user@{run.slug}.com",
                username="user",
                password=generate_password(),
                name="Default User",
                role=ROLE_CLIENT_USER,
                active=False,
            ),
        }

    async def _seed(self, run: _Run) -> None:
        accounts = self._accounts(run)
        seeded = await self.seeder.run(
            run.url,
            run.slug,
            SeedOptions(
                company_name=run.name,
                super_admin=accounts["super_admin"],
                tenant_admin=accounts["tenant_admin"],
                default_user=accounts["default_user"],
            ),
        )
        run.accounts = accounts
        run.company_id = seeded.company_id

    async def _create_storage(self, run: _Run) -> None:
        await self.storage.create_namespace(run.slug)

    async def _upload_assets(self, run: _Run) -> None:
        if run.request is None:
            return

        assets: dict[str, AssetUpload | None] = {
            "logo": run.request.logo,
            "favicon": run.request.favicon,
            "pwa_icon": run.request.pwa_icon,
        }
        failed = []
        for kind, asset in assets.items():
            if asset is None:
                continue
            try:
                run.asset_urls[kind] = await self.storage.write_asset(
                    run.slug, asset.filename, asset.content, "branding"
                )
            except Exception as e:
                # assets fail independently
                self._record_failure(run, f"assets_uploaded:{kind}", e)
                failed.append(kind)

        if failed:
            raise EnrichmentFailed(
                "Some branding assets could not be stored",
                database=run.db_name,
                step=ProvisioningStep.ASSETS_UPLOADED.value,
                details={"assets": failed},
            )

    def _require_company(self, run: _Run, step: ProvisioningStep) -> str:
        if run.company_id is None:
            raise EnrichmentFailed(
                "No seeded company to attach to",
                database=run.db_name,
                step=step.value,
            )
        return run.company_id

    async def _apply_company_profile(self, run: _Run) -> None:
        company_id = self._require_company(run, ProvisioningStep.COMPANY_PROFILE_APPLIED)
        profile: dict = {}
        if run.request is not None and run.request.company_info is not None:
            profile.update(run.request.company_info.model_dump(exclude_none=True))
        for kind, url in run.asset_urls.items():
            profile[f"{kind}_url"] = url

        if not profile:
            return

        await enrichment.update_company_profile(
            self.router.get(run.url), company_id, profile
        )

    async def _create_export_template(self, run: _Run) -> None:
        company_id = self._require_company(run, ProvisioningStep.EXPORT_TEMPLATE_CREATED)
        template = await enrichment.create_default_export_template(
            self.router.get(run.url), company_id
        )
        run.export_template_id = template.id

    async def _create_location(self, run: _Run) -> None:
        if run.request is None or run.request.initial_location is None:
            return
        location = await enrichment.create_initial_location(
            self.router.get(run.url),
            run.company_id,
            run.request.initial_location.model_dump(exclude_none=True),
        )
        run.location_id = location.id
