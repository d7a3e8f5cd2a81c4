"""Tenant resolution middleware.

Resolves the tenant slug for every request and exposes it on
``request.state`` for downstream handlers and dependencies.
"""

from typing import TYPE_CHECKING

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from app.core.tenancy.resolver import TenantResolver


if TYPE_CHECKING:
    from starlette.types import ASGIApp


logger = structlog.get_logger()


class TenantResolutionMiddleware(BaseHTTPMiddleware):
    """Middleware that injects the resolved tenant into requests.

    Sets ``request.state.tenant_slug`` and ``request.state.tenant_source``
    (both None when no strategy matches), binds the slug to the structlog
    context and echoes it in ``X-Tenant-Slug`` / ``X-Tenant-Source``.

    Attributes:
        exclude_paths: Paths that never carry tenant context
    """

    def __init__(
        self,
        app: "ASGIApp",
        resolver: TenantResolver,
        exclude_paths: list[str] | None = None,
    ) -> None:
        super().__init__(app)
        self.resolver = resolver
        self.exclude_paths = exclude_paths or [
            "/health",
            "/docs",
            "/redoc",
            "/openapi.json",
        ]

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        """Resolve the tenant and pass the request on.

        Args:
            request: The incoming request
            call_next: The next middleware/handler

        Returns:
            The response from the handler
        """
        request.state.tenant_slug = None
        request.state.tenant_source = None

        if any(request.url.path.startswith(path) for path in self.exclude_paths):
            return await call_next(request)

        resolved = self.resolver.resolve(
            host=request.headers.get("host"),
            pathname=request.url.path,
            cookies=request.cookies,
        )

        if resolved is None:
            return await call_next(request)

        request.state.tenant_slug = resolved.slug
        request.state.tenant_source = resolved.source.value
        structlog.contextvars.bind_contextvars(tenant_slug=resolved.slug)

        try:
            response = await call_next(request)
        finally:
            structlog.contextvars.unbind_contextvars("tenant_slug")

        response.headers["X-Tenant-Slug"] = resolved.slug
        response.headers["X-Tenant-Source"] = resolved.source.value
        return response
