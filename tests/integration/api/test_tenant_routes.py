"""Integration tests for the tenant administration API."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import AsyncClient


pytestmark = pytest.mark.integration

BASE = "/api/v1/tenants"


@pytest.fixture
async def acme(client: AsyncClient) -> dict:
    response = await client.post(
        BASE, json={"name": "Acme Corporation", "slug": "acme", "subdomain": "acme", "year": 2025}
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestCreate:
    """Tests for POST /tenants."""

    @pytest.mark.asyncio
    async def test_create_returns_credentials(self, acme: dict):
        assert acme["tenant"]["current_db"] == "tenant_acme_2025"
        assert acme["credentials"]["tenant_admin"]["email"] == "admin@acme.com"
        assert acme["credentials"]["access_url"] == "https://acme.onwindos.com"
        assert "database_url" not in acme

    @pytest.mark.asyncio
    async def test_slug_generated_from_name(self, client: AsyncClient):
        response = await client.post(BASE, json={"name": "Globex Industries", "year": 2025})

        assert response.status_code == 201
        assert response.json()["tenant"]["slug"] == "globex-industries"

    @pytest.mark.asyncio
    async def test_duplicate_slug(self, client: AsyncClient, acme: dict):
        response = await client.post(BASE, json={"name": "Other", "slug": "acme"})

        assert response.status_code == 409
        assert response.json()["status"] == 409

    @pytest.mark.asyncio
    async def test_invalid_slug(self, client: AsyncClient):
        response = await client.post(BASE, json={"name": "Acme", "slug": "Not Valid"})

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_migration_failure(self, client: AsyncClient, admin):
        admin.fail_migrations = True

        response = await client.post(BASE, json={"name": "Acme", "slug": "acme"})

        assert response.status_code == 500
        assert response.json()["title"]

        tenant = (await client.get(f"{BASE}/acme")).json()
        assert tenant["status"] == "setup_failed"
        assert tenant["setup_failed"] is True


class TestReadUpdateDelete:
    """Tests for single-tenant endpoints."""

    @pytest.mark.asyncio
    async def test_get(self, client: AsyncClient, acme: dict):
        response = await client.get(f"{BASE}/acme")

        assert response.status_code == 200
        assert response.json()["all_databases"] == ["tenant_acme_2025"]

    @pytest.mark.asyncio
    async def test_get_unknown(self, client: AsyncClient):
        response = await client.get(f"{BASE}/missing")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_list(self, client: AsyncClient, acme: dict):
        response = await client.get(BASE, params={"status": "active"})

        body = response.json()
        assert body["total"] == 1
        assert body["items"][0]["slug"] == "acme"

    @pytest.mark.asyncio
    async def test_patch(self, client: AsyncClient, acme: dict):
        response = await client.patch(
            f"{BASE}/acme", json={"name": "Acme Corp", "metadata": {"plan": "pro"}}
        )

        assert response.status_code == 200
        assert response.json()["name"] == "Acme Corp"
        assert response.json()["metadata"] == {"plan": "pro"}

    @pytest.mark.asyncio
    async def test_patch_slug_rejected(self, client: AsyncClient, acme: dict):
        response = await client.patch(f"{BASE}/acme", json={"slug": "other"})

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_soft_delete(self, client: AsyncClient, acme: dict, admin):
        response = await client.delete(f"{BASE}/acme", params={"hard": "false"})

        assert response.status_code == 204
        assert (await client.get(f"{BASE}/acme")).json()["status"] == "inactive"
        assert admin.dropped == []

    @pytest.mark.asyncio
    async def test_hard_delete(self, client: AsyncClient, acme: dict, admin):
        response = await client.delete(f"{BASE}/acme")

        assert response.status_code == 204
        assert admin.dropped == ["tenant_acme_2025"]
        assert (await client.get(f"{BASE}/acme")).status_code == 404


class TestRotation:
    """Tests for rotation endpoints."""

    @pytest.mark.asyncio
    async def test_rotate(self, client: AsyncClient, acme: dict):
        response = await client.post(f"{BASE}/acme/rotate", json={"year": 2026})

        assert response.status_code == 200
        assert response.json()["current_db"] == "tenant_acme_2026"

        databases = (await client.get(f"{BASE}/acme/databases")).json()
        assert [d["database"] for d in databases] == ["tenant_acme_2025", "tenant_acme_2026"]

    @pytest.mark.asyncio
    async def test_rotate_duplicate_year(self, client: AsyncClient, acme: dict):
        response = await client.post(f"{BASE}/acme/rotate", json={"year": 2025})

        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_list_all_databases(self, client: AsyncClient, acme: dict):
        response = await client.get(f"{BASE}/databases")

        assert response.status_code == 200
        assert response.json()[0]["tenant_slug"] == "acme"


class TestJobs:
    """Tests for endpoints that enqueue background jobs."""

    @pytest.mark.asyncio
    async def test_setup_without_queue(self, client: AsyncClient, acme: dict):
        response = await client.post(f"{BASE}/acme/setup", json={"resume": True})

        assert response.status_code == 503

    @pytest.mark.asyncio
    async def test_setup_enqueues_job(self, client: AsyncClient, app, acme: dict):
        pool = AsyncMock()
        pool.enqueue_job.return_value = MagicMock(job_id="setup:acme")
        app.state.arq_pool = pool

        response = await client.post(f"{BASE}/acme/setup", json={"resume": True})

        assert response.status_code == 202
        assert response.json() == {"job_id": "setup:acme", "status": "queued"}
        pool.enqueue_job.assert_awaited_once()
        assert pool.enqueue_job.await_args.kwargs["resume"] is True

    @pytest.mark.asyncio
    async def test_setup_unknown_tenant(self, client: AsyncClient, app):
        app.state.arq_pool = AsyncMock()

        response = await client.post(f"{BASE}/missing/setup")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_rotate_async(self, client: AsyncClient, app, acme: dict):
        pool = AsyncMock()
        pool.enqueue_job.return_value = MagicMock(job_id="abc")
        app.state.arq_pool = pool

        response = await client.post(f"{BASE}/acme/rotate/async", json={"year": 2026})

        assert response.status_code == 202
        assert pool.enqueue_job.await_args.args == ("rotate_tenant_year_job", "acme")


class TestCurrentTenant:
    """Tests for GET /tenants/current with tenant resolution."""

    @pytest.mark.asyncio
    async def test_resolved_by_subdomain(self, client: AsyncClient, acme: dict):
        response = await client.get(f"{BASE}/current", headers={"host": "acme.onwindos.com"})

        assert response.status_code == 200
        body = response.json()
        assert body["slug"] == "acme"
        assert body["database"].endswith("tenant_acme_2025.db")

    @pytest.mark.asyncio
    async def test_previous_generation_by_year(self, client: AsyncClient, acme: dict):
        await client.post(f"{BASE}/acme/rotate", json={"year": 2026})

        current = await client.get(f"{BASE}/current", headers={"host": "acme.onwindos.com"})
        previous = await client.get(
            f"{BASE}/current",
            headers={"host": "acme.onwindos.com", "X-Tenant-Year": "2025"},
        )

        assert current.json()["database"].endswith("tenant_acme_2026.db")
        assert previous.json()["database"].endswith("tenant_acme_2025.db")
        assert previous.json()["current_db"] == "tenant_acme_2026"

    @pytest.mark.asyncio
    async def test_unknown_generation(self, client: AsyncClient, acme: dict):
        response = await client.get(
            f"{BASE}/current",
            headers={"host": "acme.onwindos.com", "X-Tenant-Year": "1999"},
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_without_tenant_context(self, client: AsyncClient):
        response = await client.get(f"{BASE}/current")

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_inactive_tenant(self, client: AsyncClient, acme: dict):
        await client.delete(f"{BASE}/acme", params={"hard": "false"})

        response = await client.get(f"{BASE}/current", headers={"host": "acme.onwindos.com"})

        assert response.status_code == 404
