#!/usr/bin/env python
"""
Provision demo tenants for development.

Runs the full provisioning workflow, so PostgreSQL must be reachable
with the configured admin credentials.
"""

import argparse
import asyncio
import sys


# Add src to path for imports
sys.path.insert(0, "src")

from app.config import load_settings
from app.core.container import Platform
from app.core.errors import AppException, TenantNotFoundError
from app.core.logging import configure_logging
from app.modules.tenants.schemas import CompanyInfo, InitialLocation, TenantCreate


SCENARIOS: dict[str, list[TenantCreate]] = {
    "default": [
        TenantCreate(name="Default Organization", slug="default"),
    ],
    "demo": [
        TenantCreate(
            name="Acme Corporation",
            slug="acme",
            subdomain="acme",
            company_info=CompanyInfo(industry="Manufacturing", city="Istanbul"),
            initial_location=InitialLocation(name="Head Office", type="office"),
        ),
        TenantCreate(name="Globex Industries", slug="globex", subdomain="globex"),
        TenantCreate(name="Initech", slug="initech", custom_domain="initech.example.com"),
    ],
}


async def seed(requests: list[TenantCreate]) -> None:
    settings = load_settings()
    configure_logging(settings)
    platform = Platform.from_settings(settings)
    service = platform.tenant_service()

    try:
        for request in requests:
            try:
                await service.get_tenant(request.slug)
                print(f"Tenant already exists: {request.slug}")
                continue
            except TenantNotFoundError:
                pass

            try:
                result = await service.create_tenant(request)
            except AppException as e:
                print(f"Failed to provision {request.slug}: {e.message}")
                continue

            print(f"Created tenant: {request.name} ({result.tenant.current_db})")
            if result.credentials is not None:
                admin = result.credentials.tenant_admin
                print(f"  admin: {admin.email} / {admin.password}")
    finally:
        await platform.aclose()


async def main(scenario: str) -> None:
    """Run the seeding based on scenario."""
    requests = SCENARIOS.get(scenario)
    if requests is None:
        print(f"Unknown scenario: {scenario}")
        print(f"Available scenarios: {', '.join(SCENARIOS)}")
        sys.exit(1)
    await seed(requests)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Provision demo tenants")
    parser.add_argument(
        "--scenario",
        "-s",
        default="default",
        help="Seed scenario to run (default, demo)",
    )
    args = parser.parse_args()

    asyncio.run(main(args.scenario))
