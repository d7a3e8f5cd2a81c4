"""Shared API dependencies."""

from typing import Annotated, Any

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings
from app.core.database import get_db


# Type alias for database session dependency
DBSession = Annotated[AsyncSession, Depends(get_db)]


def get_platform(request: Request) -> Any:
    """Return the ``Platform`` built by the application lifespan."""
    return request.app.state.platform


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


PlatformDep = Annotated[Any, Depends(get_platform)]
SettingsDep = Annotated[Settings, Depends(get_app_settings)]
