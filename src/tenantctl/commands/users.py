"""Commands: find-user, sync-super-admin."""

import typer
from rich.console import Console
from rich.table import Table

from tenantctl.utils import run_service


console = Console()


def find_user(
    identifier: str = typer.Argument(..., help="Email or username"),
) -> None:
    """Find a user across all active tenants."""
    matches = run_service(lambda service: service.find_user(identifier))

    if not matches:
        console.print(f"[yellow]No user matching '{identifier}'.[/yellow]")
        raise typer.Exit(1)

    table = Table(title=f"Users matching '{identifier}'", show_header=True)
    table.add_column("Tenant", style="cyan", no_wrap=True)
    table.add_column("Database", no_wrap=True)
    table.add_column("Email")
    table.add_column("Username")
    table.add_column("Role")
    table.add_column("Status")

    for match in matches:
        table.add_row(
            match.tenant_slug,
            match.database,
            match.email,
            match.username,
            match.role,
            match.status,
        )

    console.print()
    console.print(table)
    console.print()


def sync_super_admin() -> None:
    """Create or refresh the super admin in every active tenant."""
    report = run_service(lambda service: service.sync_super_admin())

    for outcome in report.outcomes:
        if outcome.ok:
            suffix = " (created)" if outcome.created else ""
            console.print(f"[green]✓[/green] {outcome.tenant_slug}{suffix}")
        else:
            console.print(f"[red]✗[/red] {outcome.tenant_slug}: {outcome.error}")

    console.print(
        f"\nSuper admin: [cyan]{report.email}[/cyan] ({report.username})"
    )
    if report.password:
        console.print(
            f"Generated password for new accounts: [yellow]{report.password}[/yellow]"
        )

    if report.failed:
        raise typer.Exit(1)
