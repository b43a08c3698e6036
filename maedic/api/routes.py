"""HTTP routes.

Endpoints:
  GET /v1/health    aggregated platform health (200 healthy / 503 unhealthy)
  GET /v1/self      can maedic reach the database (200 / 503)
  GET /v1/config    active threshold policy, only when expose_config is set
  GET /v1/metrics   raw system readings, independent of thresholds
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse

from maedic import __version__
from maedic.health.engine import evaluate
from maedic.health.models import (
    DatabaseConnectionState,
    HealthReport,
    MaedicHealth,
    SystemHealth,
    Verdict,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1")


@router.get("/health", response_model=HealthReport)
async def check_health(request: Request) -> JSONResponse:
    """Evaluate every enabled check against the current threshold policy."""
    state = request.app.state
    report, verdict = await evaluate(
        state.settings.limits,
        state.db_probe,
        state.system_probe,
        executor=getattr(state, "executor", None),
    )
    status_code = 200 if verdict == Verdict.HEALTHY else 503
    return JSONResponse(status_code=status_code, content=report.model_dump(mode="json"))


@router.get("/self", response_model=MaedicHealth)
def self_health(request: Request) -> JSONResponse:
    connection = request.app.state.connectivity_probe.ping()
    body = MaedicHealth(database_connection=connection, version_number=__version__)
    status_code = 200 if connection == DatabaseConnectionState.HEALTHY else 503
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


@router.get("/config")
def get_config(request: Request) -> dict[str, Any]:
    settings = request.app.state.settings
    if not settings.application.expose_config:
        raise HTTPException(status_code=404, detail="Not Found")
    return settings.limits.model_dump()


@router.get("/metrics", response_model=SystemHealth)
def system_metrics(request: Request) -> SystemHealth:
    """Current process/CPU/memory readings from the shared system probe."""
    state = request.app.state
    return state.system_probe.sample(state.settings.limits.service_name)
