"""FastAPI application: probe wiring, error translation, app factory."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from maedic import __version__
from maedic.api.routes import router
from maedic.config import Settings, get_configuration
from maedic.errors import HealthError
from maedic.probes import ConnectivityProbe, DatabaseProbe, SystemProbe, setup_database_pool

logger = logging.getLogger(__name__)


# ── Lifespan ─────────────────────────────────────────────────────────────────


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build the connection pool and the shared probes on startup."""
    settings: Settings = app.state.settings

    engine = setup_database_pool(settings.database)
    app.state.engine = engine
    app.state.db_probe = DatabaseProbe(engine)
    app.state.connectivity_probe = ConnectivityProbe(engine)
    app.state.system_probe = SystemProbe()
    app.state.executor = ThreadPoolExecutor(max_workers=5, thread_name_prefix="probe")

    logger.info(
        "maedic %s ready: queue=%s spool=%s service=%s cpu=%s ram=%s",
        __version__,
        settings.limits.queue_check_enabled,
        settings.limits.spool_check_enabled,
        settings.limits.check_local_service,
        settings.limits.cpu_check_enabled,
        settings.limits.ram_check_enabled,
    )

    yield

    # Let in-flight probes hand back their connections before the pool goes away
    app.state.executor.shutdown(wait=True)
    engine.dispose()
    logger.info("Database pool disposed")


# ── Error translation ────────────────────────────────────────────────────────


async def health_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Turn a probe failure into an opaque 500. Details were logged at detection."""
    logger.error(
        "%s %s failed with %s: %s",
        request.method, request.url.path, type(exc).__name__, exc,
    )
    message = getattr(exc, "public_message", HealthError.public_message)
    return JSONResponse(status_code=500, content={"detail": message})


# ── App factory ──────────────────────────────────────────────────────────────


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create the maedic FastAPI application."""
    app = FastAPI(
        title="maedic platform health endpoint",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings or get_configuration()

    app.add_exception_handler(HealthError, health_error_handler)
    app.include_router(router)

    return app
