"""Command: list-databases."""

import typer
from rich.console import Console
from rich.table import Table

from tenantctl.utils import run_service


console = Console()


def list_databases(
    slug: str | None = typer.Argument(None, help="Limit to one tenant"),
) -> None:
    """List every database generation."""
    databases = run_service(lambda service: service.list_databases(slug))

    if not databases:
        console.print("[yellow]No databases found.[/yellow]")
        return

    table = Table(title="Tenant databases", show_header=True)
    table.add_column("Tenant", style="cyan", no_wrap=True)
    table.add_column("Database", no_wrap=True)
    table.add_column("Year", justify="right")
    table.add_column("Current", no_wrap=True)

    for db in databases:
        table.add_row(
            db.tenant_slug,
            db.database,
            str(db.year) if db.year else "",
            "[green]current[/green]" if db.is_current else "",
        )

    console.print()
    console.print(table)
    console.print()
