"""Health check endpoints."""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from paayo.config import settings
from paayo.core.database import check_db_connection
from paayo.core.redis import check_redis_connection

router = APIRouter(prefix="/health", tags=["Health"])


class HealthResponse(BaseModel):
    status: str
    version: str
    environment: str
    checks: dict[str, bool]


class LivenessResponse(BaseModel):
    status: str
    version: str


class ReadinessResponse(BaseModel):
    status: str
    checks: dict[str, bool]


@router.get(
    "",
    response_model=HealthResponse,
    summary="Service health",
    description="Version, environment and the state of database and Redis.",
)
async def health() -> HealthResponse:
    db_ok = await check_db_connection()
    redis_ok = await check_redis_connection()

    return HealthResponse(
        status="ok" if db_ok and redis_ok else "degraded",
        version=settings.app_version,
        environment=settings.environment,
        checks={"database": db_ok, "redis": redis_ok},
    )


@router.get("/live", response_model=LivenessResponse, summary="Liveness check")
async def liveness() -> LivenessResponse:
    return LivenessResponse(status="ok", version=settings.app_version)


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    summary="Readiness check",
    responses={
        status.HTTP_503_SERVICE_UNAVAILABLE: {
            "description": "The database is unreachable",
        }
    },
)
async def readiness():
    """Ready while the database answers. Redis is optional and only reported."""
    db_ok = await check_db_connection()
    redis_ok = await check_redis_connection()

    body = ReadinessResponse(
        status="ok" if db_ok else "unavailable",
        checks={"database": db_ok, "redis": redis_ok},
    )
    if not db_ok:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body.model_dump()
        )
    return body
