"""Root API router: health checks, platform info and versioned module routes."""

from typing import Any

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from app.api.dependencies import DBSession, PlatformDep, SettingsDep
from app.modules import discover_modules


class HealthResponse(BaseModel):
    status: str


class ReadinessResponse(BaseModel):
    """Outcome of each dependency check; ``ok`` or the failure reason."""

    status: str
    checks: dict[str, str]


api_router = APIRouter()

# Health checks live outside /api/v1
health_router = APIRouter(tags=["health"])


@health_router.get(
    "/health/live",
    response_model=HealthResponse,
    summary="Liveness check",
)
async def liveness() -> HealthResponse:
    return HealthResponse(status="alive")


@health_router.get(
    "/health/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    description=(
        "Checks the tenant registry and the job queue. Provisioning and "
        "setup requests cannot be served while either is down."
    ),
)
async def readiness(db: DBSession, request: Request) -> JSONResponse:
    checks: dict[str, str] = {}

    try:
        await db.execute(text("SELECT 1"))
        checks["registry"] = "ok"
    except SQLAlchemyError as e:
        checks["registry"] = str(e)

    pool = getattr(request.app.state, "arq_pool", None)
    if pool is None:
        checks["queue"] = "unavailable"
    else:
        try:
            await pool.ping()
            checks["queue"] = "ok"
        except (OSError, RedisError) as e:
            checks["queue"] = str(e)

    ready = all(v == "ok" for v in checks.values())
    return JSONResponse(
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "ready" if ready else "degraded", "checks": checks},
    )


@health_router.get("/info", summary="Platform info")
async def info(settings: SettingsDep, platform: PlatformDep) -> dict[str, Any]:
    """Routing settings and the number of open tenant connection pools."""
    return {
        "app": settings.app_name,
        "environment": settings.environment,
        "debug": settings.debug,
        "production_domain": settings.production_domain,
        "tenant_path_prefix": settings.tenant_path_prefix,
        "tenant_connections": len(platform.router),
    }


v1_router = APIRouter(prefix="/api/v1")
for module_router in discover_modules():
    v1_router.include_router(module_router)

api_router.include_router(health_router)
api_router.include_router(v1_router)
