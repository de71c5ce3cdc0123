"""Read-only endpoints serving normalized user data and chart projections."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter

from src.dependencies import AppChartConfig, Gateway
from src.metrics.charts import ChartLoader, build_dashboard
from src.metrics.errors import NotFoundError
from src.models.base import ErrorDetail
from src.models.dashboard import (
    ActivityPointRead,
    DashboardCharts,
    DashboardRead,
    PerformancePointRead,
    ScorePointRead,
    SessionPointRead,
    UserOverviewRead,
)

router = APIRouter(prefix="/users", tags=["users"])
logger = logging.getLogger("sportsee.routers.users")

_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    404: {"model": ErrorDetail, "description": "Unknown user"},
    502: {"model": ErrorDetail, "description": "Origin unreachable or malformed payload"},
}


# ---------- User ----------

@router.get("/{user_id}", response_model=UserOverviewRead, responses=_ERROR_RESPONSES)
async def get_user(user_id: int, gateway: Gateway, config: AppChartConfig) -> Any:
    overview = await ChartLoader(gateway, config).user(user_id)
    return UserOverviewRead.model_validate(overview)


# ---------- Charts ----------

@router.get(
    "/{user_id}/activity",
    response_model=list[ActivityPointRead],
    responses=_ERROR_RESPONSES,
)
async def get_activity_chart(user_id: int, gateway: Gateway, config: AppChartConfig) -> Any:
    points = await ChartLoader(gateway, config).activity(user_id)
    return [ActivityPointRead.model_validate(p) for p in points]


@router.get(
    "/{user_id}/average-sessions",
    response_model=list[SessionPointRead],
    responses=_ERROR_RESPONSES,
)
async def get_sessions_chart(user_id: int, gateway: Gateway, config: AppChartConfig) -> Any:
    points = await ChartLoader(gateway, config).sessions(user_id)
    return [SessionPointRead.model_validate(p) for p in points]


@router.get(
    "/{user_id}/performance",
    response_model=list[PerformancePointRead],
    responses=_ERROR_RESPONSES,
)
async def get_performance_chart(user_id: int, gateway: Gateway, config: AppChartConfig) -> Any:
    points = await ChartLoader(gateway, config).performance(user_id)
    return [PerformancePointRead.model_validate(p) for p in points]


@router.get("/{user_id}/score", response_model=ScorePointRead, responses=_ERROR_RESPONSES)
async def get_score_chart(user_id: int, gateway: Gateway, config: AppChartConfig) -> Any:
    return ScorePointRead.model_validate(await ChartLoader(gateway, config).score(user_id))


# ---------- Dashboard ----------

@router.get("/{user_id}/dashboard", response_model=DashboardRead, responses=_ERROR_RESPONSES)
async def get_dashboard(user_id: int, gateway: Gateway, config: AppChartConfig) -> Any:
    """Every chart at once.

    Partial failures are reported in ``errors`` with a 200.  When every
    chart failed, the request fails with 404 if any chart reported an
    unknown user, else with the first chart's error.
    """
    dashboard = build_dashboard(gateway, config)
    try:
        dashboard.update([user_id])
        state = await dashboard.wait()
    finally:
        dashboard.dispose()

    failures = [b.state.error for b in dashboard.bindings.values()]
    if all(err is not None for err in failures):
        raise next((err for err in failures if isinstance(err, NotFoundError)), failures[0])
    if state.has_error:
        logger.info(
            "Dashboard for user %s has failing charts: %s",
            user_id,
            sorted(name for name, err in state.errors.items() if err),
        )
    return DashboardRead(
        user_id=user_id,
        origin=gateway.origin,
        charts=DashboardCharts.model_validate(state.per_chart),
        loading=state.loading,
        has_error=state.has_error,
        errors=state.errors,
    )
