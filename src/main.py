"""SportSee API — FastAPI application entry point.

Run locally:
    uvicorn src.main:app --reload --port 8000

Select the data origin with ``DATA_ORIGIN=mock`` (default) or
``DATA_ORIGIN=remote`` (SportSee backend at ``REMOTE_BASE_URL``).
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.config import get_settings
from src.dependencies import get_gateway
from src.metrics.config_loader import get_chart_config
from src.metrics.errors import MetricsError, NotFoundError
from src.routers import health, users

# ---------- Logging ----------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
    stream=sys.stdout,
)
logger = logging.getLogger("sportsee")

_STATUS_BY_ERROR: dict[type[MetricsError], int] = {
    NotFoundError: 404,
}


# ---------- Lifespan ----------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup / shutdown hooks."""
    settings = get_settings()
    logging.getLogger().setLevel(settings.log_level.upper())
    get_chart_config()  # fail fast on an invalid chart_config.yaml
    gateway = get_gateway()
    logger.info(
        "Starting SportSee API v%s [%s] with %s origin",
        settings.app_version,
        settings.environment,
        gateway.origin,
    )
    yield
    await gateway.aclose()
    logger.info("SportSee API shut down")


# ---------- Error mapping ----------

async def metrics_error_handler(request: Request, exc: MetricsError) -> JSONResponse:
    """Map metrics-layer failures to HTTP responses (404 or 502)."""
    status_code = _STATUS_BY_ERROR.get(type(exc), 502)
    if status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


# ---------- App factory ----------

def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title="SportSee API",
        description=(
            "Normalized fitness metrics and chart-ready projections from the "
            "SportSee mock fixtures or remote backend."
        ),
        version=settings.app_version,
        debug=settings.debug,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_exception_handler(MetricsError, metrics_error_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    # ---------- Health check (outside v1 prefix — always at /health) ----------
    app.include_router(health.router)

    # ---------- API v1 routes ----------
    app.include_router(users.router, prefix="/api/v1")

    return app


app = create_app()
