"""Database layer - session management, base models, and mixins."""

from app.core.database.base import Base, TimestampMixin, UUIDMixin
from app.core.database.session import (
    create_registry_engine,
    create_session_factory,
    get_db,
)


__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "create_registry_engine",
    "create_session_factory",
    "get_db",
]
