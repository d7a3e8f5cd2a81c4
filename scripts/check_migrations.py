#!/usr/bin/env python
"""
Verify that models match migrations for both migration trees.
Fails CI if there are pending model changes not captured in migrations.

The tenant tree is compared against a scratch database given in
TENANT_CHECK_DATABASE_URL; it is skipped when that is unset.
"""

import os
import subprocess
import sys
from pathlib import Path


def check_tree(name: str, versions: Path, extra_args: list[str]) -> int:
    print(f"Checking '{name}' migrations...")

    result = subprocess.run(
        [
            "alembic",
            "--name",
            name,
            *extra_args,
            "revision",
            "--autogenerate",
            "-m",
            "ci_check",
        ],
        capture_output=True,
        text=True,
        check=False,
        env={"PYTHONPATH": "src", **os.environ},
    )

    output = result.stdout + result.stderr

    # If the migration was created, there are pending changes
    if "Generating" in output and "ci_check" in output:
        print(f"❌ Pending '{name}' model changes not captured in migrations:")
        print(output)

        for f in versions.glob("*ci_check*.py"):
            f.unlink()
            print(f"Cleaned up: {f}")

        return 1

    if result.returncode != 0:
        print(f"❌ Alembic command failed: {output}")
        return 1

    print(f"✅ '{name}' models and migrations are in sync")
    return 0


def main() -> int:
    """Check if migrations are in sync with models."""
    status = check_tree("alembic", Path("alembic/versions"), [])

    tenant_url = os.environ.get("TENANT_CHECK_DATABASE_URL")
    if tenant_url:
        status |= check_tree(
            "tenant", Path("tenant_migrations/versions"), ["-x", f"url={tenant_url}"]
        )
    else:
        print("Skipping 'tenant' migrations (TENANT_CHECK_DATABASE_URL unset)")

    return status


if __name__ == "__main__":
    sys.exit(main())
