"""Commands: create-tenant, delete-tenant, rotate-year, setup-tenant-db, list-tenants."""

import typer
from rich.console import Console
from rich.table import Table

from app.modules.tenants.models import TenantStatus
from app.modules.tenants.schemas import ProvisioningResult, TenantCreate, TenantListParams
from tenantctl.utils import build_request, run_service


console = Console()


def _print_result(result: ProvisioningResult) -> None:
    console.print(f"  Database: [cyan]{result.tenant.current_db}[/cyan]")

    if result.credentials is not None:
        creds = result.credentials
        table = Table(title="Initial credentials (change on first login)")
        table.add_column("Account", style="cyan", no_wrap=True)
        table.add_column("Email")
        table.add_column("Username")
        table.add_column("Password", style="yellow")
        for label, account in (
            ("Super admin", creds.super_admin),
            ("Tenant admin", creds.tenant_admin),
            ("Default user (inactive)", creds.default_user),
        ):
            table.add_row(label, account.email, account.username, account.password)
        console.print()
        console.print(table)
        console.print(f"\n  Access URL: [bold]{creds.access_url}[/bold]")

    if result.enrichment_failures:
        console.print(
            "\n[yellow]Warning:[/yellow] some optional steps failed: "
            + ", ".join(result.enrichment_failures)
        )


def create_tenant(
    name: str = typer.Argument(..., help="Display name of the tenant"),
    slug: str = typer.Argument(..., help="Immutable tenant slug"),
    subdomain: str | None = typer.Option(None, "--subdomain", help="Routing subdomain"),
    custom_domain: str | None = typer.Option(None, "--custom-domain", help="Custom domain"),
    agency_id: str | None = typer.Option(None, "--agency-id", help="Owning agency"),
    year: int | None = typer.Option(None, "--year", help="Year of the first database"),
) -> None:
    """Register a tenant and provision its database."""
    request = build_request(
        TenantCreate,
        name=name,
        slug=slug,
        subdomain=subdomain,
        custom_domain=custom_domain,
        agency_id=agency_id,
        year=year,
    )
    console.print(f"\n[bold cyan]Creating tenant:[/bold cyan] {name} ({slug})\n")

    result = run_service(lambda service: service.create_tenant(request))

    console.print(f"[green]✓[/green] Tenant created: {result.tenant.slug}")
    _print_result(result)


def delete_tenant(
    slug: str = typer.Argument(..., help="Tenant slug"),
    soft: bool = typer.Option(False, "--soft", help="Only mark the tenant inactive"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation prompt"),
) -> None:
    """Delete a tenant and drop all of its databases."""
    if not force:
        action = "deactivate" if soft else "permanently delete (all databases)"
        if not typer.confirm(f"Are you sure you want to {action} '{slug}'?"):
            console.print("[yellow]Cancelled.[/yellow]")
            raise typer.Exit(0)

    run_service(lambda service: service.delete_tenant(slug, hard=not soft))

    if soft:
        console.print(f"[green]✓[/green] Tenant deactivated: {slug}")
    else:
        console.print(f"[green]✓[/green] Tenant deleted: {slug}")


def rotate_year(
    slug: str = typer.Argument(..., help="Tenant slug"),
    year: int | None = typer.Option(None, "--year", help="Target year (default: next year)"),
) -> None:
    """Create the next yearly database generation and switch to it."""
    tenant = run_service(lambda service: service.rotate_year(slug, year))

    console.print(f"[green]✓[/green] Rotated {slug} to [cyan]{tenant.current_db}[/cyan]")
    console.print(f"  Generations: {', '.join(tenant.all_databases)}")


def setup_tenant_db(
    slug: str = typer.Argument(..., help="Tenant slug"),
    resume: bool = typer.Option(
        False, "--resume", help="Skip steps already completed by a previous run"
    ),
) -> None:
    """Re-run provisioning against the tenant's current database."""
    result = run_service(lambda service: service.setup_tenant_database(slug, resume=resume))

    console.print(f"[green]✓[/green] Tenant database ready: {slug}")
    _print_result(result)


def list_tenants(
    status: TenantStatus | None = typer.Option(None, "--status", help="Filter by status"),
    agency_id: str | None = typer.Option(None, "--agency-id", help="Filter by agency"),
    page: int = typer.Option(1, "--page", min=1),
    page_size: int = typer.Option(50, "--page-size", min=1, max=100),
) -> None:
    """List registered tenants."""
    params = build_request(
        TenantListParams,
        status=status,
        agency_id=agency_id,
        page=page,
        page_size=page_size,
    )
    tenants, total = run_service(lambda service: service.list_tenants(params))

    if not tenants:
        console.print("[yellow]No tenants found.[/yellow]")
        return

    table = Table(title=f"Tenants ({total})", show_header=True)
    table.add_column("Slug", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Status", no_wrap=True)
    table.add_column("Current database", style="green", no_wrap=True)
    table.add_column("Generations", justify="right")

    for tenant in tenants:
        state = tenant.status
        if tenant.setup_failed:
            state = f"[red]{state}[/red]"
        table.add_row(
            tenant.slug,
            tenant.name,
            state,
            tenant.current_db,
            str(len(tenant.all_databases)),
        )

    console.print()
    console.print(table)
    console.print()
