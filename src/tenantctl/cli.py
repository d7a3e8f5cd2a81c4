"""Main tenantctl CLI application."""

import typer
from rich.console import Console

from tenantctl import __version__
from tenantctl.commands import databases, tenants, users


console = Console()

app = typer.Typer(
    name="tenantctl",
    help="Provision, rotate and inspect tenant databases.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Register commands
app.command(name="create-tenant")(tenants.create_tenant)
app.command(name="delete-tenant")(tenants.delete_tenant)
app.command(name="rotate-year")(tenants.rotate_year)
app.command(name="setup-tenant-db")(tenants.setup_tenant_db)
app.command(name="list-tenants")(tenants.list_tenants)
app.command(name="list-databases")(databases.list_databases)
app.command(name="find-user")(users.find_user)
app.command(name="sync-super-admin")(users.sync_super_admin)


@app.callback(invoke_without_command=True)
def version_callback(
    version: bool = typer.Option(
        False, "--version", "-v", help="Show version and exit."
    ),
) -> None:
    """tenantctl - Tenant lifecycle administration."""
    if version:
        console.print(f"[bold cyan]tenantctl[/bold cyan] version {__version__}")
        raise typer.Exit()


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
