"""Health and readiness endpoints for the review service."""

from datetime import UTC, datetime
from typing import Literal

from fastapi import APIRouter, Request
from pydantic import BaseModel

from src.config import settings

router = APIRouter(prefix="/health", tags=["health"])

CheckResult = Literal["ok", "failed", "not_configured", "recency_fallback"]


class HealthResponse(BaseModel):
    status: str
    timestamp: datetime
    version: str
    environment: str


class LivenessResponse(BaseModel):
    status: str


class ReadinessResponse(BaseModel):
    """Readiness verdict plus the individual dependency checks.

    Only the database gates readiness; extraction and embeddings are
    reported so operators can see a degraded deployment.
    """

    status: Literal["ready", "not_ready"]
    checks: dict[str, CheckResult]


async def _database_check(request: Request) -> CheckResult:
    db = getattr(request.app.state, "db", None)
    if db is None:
        return "not_configured"
    try:
        return "ok" if await db.is_healthy() else "failed"
    except Exception:
        return "failed"


@router.get("/", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(UTC),
        version=settings.app_version,
        environment=settings.app_env,
    )


@router.get("/live", response_model=LivenessResponse)
async def liveness() -> LivenessResponse:
    """Process is up."""
    return LivenessResponse(status="alive")


@router.get("/ready", response_model=ReadinessResponse)
async def readiness(request: Request) -> ReadinessResponse:
    """Ready once the database answers; other checks are informational."""
    database = await _database_check(request)
    embedder = getattr(request.app.state, "embedding_client", None)
    checks: dict[str, CheckResult] = {
        "api": "ok",
        "database": database,
        "embeddings": "ok" if embedder is not None else "recency_fallback",
        "extraction": "ok" if settings.anthropic_api_key else "not_configured",
    }
    return ReadinessResponse(
        status="ready" if database == "ok" else "not_ready",
        checks=checks,
    )
