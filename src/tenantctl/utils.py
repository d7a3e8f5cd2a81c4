"""Helpers shared by tenantctl commands."""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import typer
from pydantic import BaseModel, ValidationError
from rich.console import Console

from app.config import load_settings
from app.core.container import Platform
from app.core.errors import AppException
from app.core.logging import configure_logging
from app.modules.tenants.services import TenantService


T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

console = Console()


def build_platform() -> Platform:
    """Read settings from the environment and wire the platform."""
    settings = load_settings()
    configure_logging(settings)
    return Platform.from_settings(settings)


def build_request(model: type[M], **fields: Any) -> M:
    """Validate command arguments into a request model.

    Invalid arguments are printed and turned into exit code 1.
    """
    try:
        return model(**fields)
    except ValidationError as e:
        console.print("[red]Error:[/red] Invalid arguments")
        for error in e.errors():
            field = ".".join(str(part) for part in error["loc"])
            console.print(f"  [dim]{field}:[/dim] {error['msg']}")
        raise typer.Exit(1) from e


def run_service(operation: Callable[[TenantService], Awaitable[T]]) -> T:
    """Run one service operation on a fresh platform.

    Application errors are printed and turned into exit code 1.
    """

    async def _run() -> T:
        platform = build_platform()
        try:
            return await operation(platform.tenant_service())
        finally:
            await platform.aclose()

    try:
        return asyncio.run(_run())
    except AppException as e:
        console.print(f"[red]Error:[/red] {e.message}")
        for key, value in e.details.items():
            console.print(f"  [dim]{key}:[/dim] {value}")
        raise typer.Exit(1) from e
