"""Shared FastAPI dependencies injected into route handlers."""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from src.config import Settings, get_settings
from src.metrics.config_loader import ChartConfig, get_chart_config
from src.metrics.gateway import DataGateway, GatewayConfig


@lru_cache
def get_gateway() -> DataGateway:
    """Return the process-wide gateway built from settings.

    The origin is fixed at construction; restart (or clear this cache) to
    switch between mock and remote.
    """
    settings = get_settings()
    return DataGateway(
        GatewayConfig(
            origin=settings.data_origin,
            base_url=settings.remote_base_url,
            timeout_seconds=settings.remote_timeout_seconds,
        )
    )


# Annotated shortcuts for route signatures
Gateway = Annotated[DataGateway, Depends(get_gateway)]
AppSettings = Annotated[Settings, Depends(get_settings)]
AppChartConfig = Annotated[ChartConfig, Depends(get_chart_config)]
