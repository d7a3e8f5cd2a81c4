"""Connection router for tenant databases.

Maps a connection URL to a live ``AsyncEngine``. Handles are cached by the
exact URL, never by tenant, so a rotated tenant gets a fresh handle for its
new generation while the previous generation stays reachable for
historical reads.
"""

import threading
from collections.abc import Callable
from typing import Any

import structlog
from sqlalchemy.exc import ArgumentError, InvalidRequestError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from app.core.errors import RoutingError


logger = structlog.get_logger()

EngineFactory = Callable[[str], AsyncEngine]


class ConnectionRouter:
    """Lock-guarded cache of database handles keyed by connection URL.

    Get-or-create runs under a single lock, so concurrent first access to
    the same URL constructs exactly one handle. Engine construction does
    not open a connection, so holding the lock is cheap.

    Usage:
        router = ConnectionRouter(pool_size=5)
        engine = router.get("postgresql+asyncpg://.../tenant_acme_2025")
        async with engine.connect() as conn:
            ...
        await router.clear()
    """

    def __init__(
        self,
        engine_factory: EngineFactory | None = None,
        **engine_options: Any,
    ) -> None:
        """Initialize the router.

        Args:
            engine_factory: Callable building a handle from a URL; defaults
                to ``create_async_engine`` with ``engine_options``
            **engine_options: Options passed to ``create_async_engine``
        """
        self._engine_factory = engine_factory or self._default_factory
        self._engine_options = engine_options
        self._engines: dict[str, AsyncEngine] = {}
        self._lock = threading.Lock()

    def _default_factory(self, url: str) -> AsyncEngine:
        options = dict(self._engine_options)
        if url.startswith("sqlite"):
            options.pop("pool_size", None)
            options.pop("max_overflow", None)
        return create_async_engine(url, pool_pre_ping=True, **options)

    def get(self, url: str) -> AsyncEngine:
        """Return the cached handle for a URL, creating it on first use.

        Args:
            url: Database connection URL

        Returns:
            The handle bound to exactly this URL

        Raises:
            RoutingError: If the URL is empty or cannot be parsed
        """
        if not url:
            raise RoutingError("Connection string is empty")

        with self._lock:
            engine = self._engines.get(url)
            if engine is not None:
                return engine

            try:
                engine = self._engine_factory(url)
            except (ArgumentError, InvalidRequestError, ValueError) as e:
                raise RoutingError(
                    "Malformed connection string",
                    details={"reason": str(e)},
                ) from e

            self._engines[url] = engine

        logger.info("tenant_handle_created", database=engine.url.database)
        return engine

    async def clear(self, url: str | None = None) -> None:
        """Dispose and evict one handle, or every handle.

        Args:
            url: Connection URL to evict; all entries when omitted
        """
        with self._lock:
            if url is None:
                evicted = list(self._engines.values())
                self._engines.clear()
            else:
                engine = self._engines.pop(url, None)
                evicted = [engine] if engine is not None else []

        for engine in evicted:
            await engine.dispose()
            logger.info("tenant_handle_disposed", database=engine.url.database)

    def urls(self) -> list[str]:
        """Return the URLs with a cached handle."""
        with self._lock:
            return list(self._engines)

    def __contains__(self, url: object) -> bool:
        with self._lock:
            return url in self._engines

    def __len__(self) -> int:
        with self._lock:
            return len(self._engines)
