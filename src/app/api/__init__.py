"""HTTP API: health endpoints and versioned module routers."""

from app.api.router import api_router


__all__ = ["api_router"]
