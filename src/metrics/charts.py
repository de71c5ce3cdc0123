"""Chart loaders and the bindings that serve them.

Each loader fetches one normalized entity through the gateway and runs
the matching transformer.  ``build_dashboard`` wraps every loader in its
own ``StableAsyncBinding`` and folds them with a ``DashboardAggregator``::

    dashboard = build_dashboard(gateway)
    dashboard.update([user_id])
    state = await dashboard.wait()
    state.per_chart["sessions"]   # 9 SessionPoint
"""

from __future__ import annotations

from src.metrics.aggregator import DashboardAggregator
from src.metrics.binding import StableAsyncBinding
from src.metrics.config_loader import ChartConfig, get_chart_config
from src.metrics.gateway import DataGateway
from src.metrics.transformers import (
    ActivityPoint,
    ActivityTransformer,
    PerformancePoint,
    PerformanceTransformer,
    ScorePoint,
    ScoreTransformer,
    SessionPoint,
    SessionsTransformer,
    UserOverview,
    UserTransformer,
)


#: Chart bindings of the dashboard, in page order.
CHART_KINDS: tuple[str, ...] = ("activity", "sessions", "performance", "score")


class ChartLoader:
    """Fetch-and-project coroutines for every chart of the dashboard."""

    def __init__(self, gateway: DataGateway, config: ChartConfig | None = None) -> None:
        self._gateway = gateway
        config = config or get_chart_config()
        self._sessions = SessionsTransformer(config)
        self._performance = PerformanceTransformer(config)
        self._user = UserTransformer(config)

    async def activity(self, user_id: int) -> list[ActivityPoint]:
        return ActivityTransformer.format(await self._gateway.get_activity(user_id))

    async def sessions(self, user_id: int) -> list[SessionPoint]:
        return self._sessions.add_ghost_points(await self._gateway.get_average_sessions(user_id))

    async def performance(self, user_id: int) -> list[PerformancePoint]:
        return self._performance.format(await self._gateway.get_performance(user_id))

    async def score(self, user_id: int) -> ScorePoint:
        summary = await self._gateway.get_user(user_id)
        return ScoreTransformer.format(summary.goal_score)

    async def user(self, user_id: int) -> UserOverview:
        return self._user.format(await self._gateway.get_user(user_id))

    def loader_for(self, kind: str):
        if kind not in (*CHART_KINDS, "user"):
            raise KeyError(f"Unknown chart {kind!r}. Available: {[*CHART_KINDS, 'user']}")
        return getattr(self, kind)


def build_chart_bindings(
    gateway: DataGateway,
    config: ChartConfig | None = None,
    include_user: bool = True,
) -> dict[str, StableAsyncBinding]:
    """Return one fresh binding per chart (plus the user header if requested)."""
    loader = ChartLoader(gateway, config)
    kinds = (*CHART_KINDS, "user") if include_user else CHART_KINDS
    return {kind: StableAsyncBinding(kind, loader.loader_for(kind)) for kind in kinds}


def build_dashboard(
    gateway: DataGateway,
    config: ChartConfig | None = None,
    include_user: bool = True,
) -> DashboardAggregator:
    return DashboardAggregator(build_chart_bindings(gateway, config, include_user))
