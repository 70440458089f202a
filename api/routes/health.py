"""
Health and readiness endpoints for load balancers and Kubernetes.
No auth required; keep payload minimal for fast checks.
"""

from fastapi import APIRouter, Response, status
from pydantic import BaseModel

from core.dependencies import DatabaseDep, SettingsDep

router = APIRouter(prefix="/health", tags=["health"])


class HealthResponse(BaseModel):
    """Minimal health payload for probes."""

    status: str = "ok"
    service: str = "tech-online-backend"


class ReadinessResponse(BaseModel):
    """Readiness with the result of each dependency check."""

    ready: bool = True
    checks: dict[str, str] = {}

    model_config = {"extra": "forbid"}


@router.get("", response_model=HealthResponse)
async def health(settings: SettingsDep) -> HealthResponse:
    """
    Liveness: is the process alive.
    Used by Kubernetes livenessProbe, Docker HEALTHCHECK.
    """
    return HealthResponse(service=settings.APP_NAME)


@router.get("/ready", response_model=ReadinessResponse)
async def ready(database: DatabaseDep, response: Response) -> ReadinessResponse:
    """Readiness: 503 until the database answers."""
    checks: dict[str, str] = {"config": "loaded"}
    db_ok = await database.ping()
    checks["database"] = "ok" if db_ok else "unavailable"
    if not db_ok:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return ReadinessResponse(ready=db_ok, checks=checks)


@router.get("/live")
async def live(response: Response) -> None:
    """
    Minimal live check: 200 with no body. For Nginx/Cloudflare health checks.
    """
    response.status_code = 200
