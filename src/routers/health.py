"""Health check endpoint — public, no auth required."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter

from src.dependencies import AppSettings, Gateway

router = APIRouter(tags=["system"])


@router.get("/health")
async def health_check(settings: AppSettings, gateway: Gateway) -> dict:
    """Liveness probe. Returns 200 if the API process is up.

    Reports which data origin the gateway serves from; the origin itself is
    not probed.
    """
    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.environment,
        "origin": gateway.origin,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
