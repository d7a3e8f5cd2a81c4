"""Tests for the tenant connection router."""

import asyncio
from unittest.mock import MagicMock

import pytest

from app.core.errors import RoutingError
from app.core.tenancy.router import ConnectionRouter


URL_2025 = "sqlite+aiosqlite:///./tenant_acme_2025.db"
URL_2026 = "sqlite+aiosqlite:///./tenant_acme_2026.db"


class TestConnectionRouter:
    """Tests for ConnectionRouter."""

    @pytest.mark.asyncio
    async def test_same_url_returns_same_handle(self, router: ConnectionRouter) -> None:
        assert router.get(URL_2025) is router.get(URL_2025)
        assert len(router) == 1

    @pytest.mark.asyncio
    async def test_distinct_urls_get_distinct_handles(self, router: ConnectionRouter) -> None:
        first = router.get(URL_2025)
        second = router.get(URL_2026)

        assert first is not second
        assert set(router.urls()) == {URL_2025, URL_2026}

    @pytest.mark.asyncio
    async def test_clear_single_url(self, router: ConnectionRouter) -> None:
        router.get(URL_2025)
        router.get(URL_2026)

        await router.clear(URL_2025)

        assert URL_2025 not in router
        assert URL_2026 in router

    @pytest.mark.asyncio
    async def test_clear_all(self, router: ConnectionRouter) -> None:
        old = router.get(URL_2025)
        router.get(URL_2026)

        await router.clear()

        assert len(router) == 0
        assert router.get(URL_2025) is not old

    @pytest.mark.asyncio
    async def test_clear_unknown_url_is_noop(self, router: ConnectionRouter) -> None:
        await router.clear(URL_2025)

        assert len(router) == 0

    def test_empty_url(self) -> None:
        with pytest.raises(RoutingError):
            ConnectionRouter().get("")

    def test_malformed_url(self) -> None:
        with pytest.raises(RoutingError) as exc_info:
            ConnectionRouter().get("not a url")

        assert exc_info.value.error_code == "routing_error"

    @pytest.mark.asyncio
    async def test_concurrent_first_access_builds_one_handle(self) -> None:
        factory = MagicMock(side_effect=lambda url: MagicMock(url=MagicMock(database="x")))
        router = ConnectionRouter(engine_factory=factory)

        handles = await asyncio.gather(
            *(asyncio.to_thread(router.get, URL_2025) for _ in range(20))
        )

        assert factory.call_count == 1
        assert all(handle is handles[0] for handle in handles)
