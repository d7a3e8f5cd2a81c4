"""Test data factories."""

from tests.factories.tenant import TenantCreateFactory


__all__ = ["TenantCreateFactory"]
