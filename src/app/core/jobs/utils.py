"""Shared utilities for job infrastructure.

Provides common functionality used by both the worker and registry modules.
"""

from arq.connections import RedisSettings

from app.config import Settings


def get_redis_settings(settings: Settings) -> RedisSettings:
    """Get Redis settings for ARQ from platform configuration.

    Returns:
        ARQ RedisSettings instance for both the worker and the enqueue pool
    """
    return RedisSettings.from_dsn(settings.redis_url)
