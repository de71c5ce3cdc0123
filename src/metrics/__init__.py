"""SportSee metrics layer.

Reconciles the inconsistent payloads of the mock and remote origins into
one canonical schema, derives chart projections from it, and serves them
through bindings that fetch at most once per distinct dependency snapshot.

Subpackages:
    sources/ — Raw payload origins (mock fixtures, remote HTTP backend)

Core modules:
    base          — Canonical data models and the MetricsSource ABC
    errors        — NotFound / Network / Schema / Transform errors, anomalies
    normalizer    — Raw payload → canonical record
    transformers  — Canonical record → chart points
    gateway       — Origin selection, shape checks, normalization
    binding       — StableAsyncBinding (deep-equality snapshots, stale requests)
    aggregator    — Combined readiness/error view over several bindings
    charts        — Chart loaders and dashboard wiring
    config_loader — Load/validate/hot-reload chart_config.yaml
"""

from src.metrics.aggregator import AggregateState, DashboardAggregator, aggregate
from src.metrics.base import (
    ActivityRecord,
    CanonicalUserBundle,
    KeyNutrition,
    MetricsSource,
    PerformanceRecord,
    SessionRecord,
    UserProfile,
    UserSummary,
)
from src.metrics.binding import BindingState, BindingStatus, StableAsyncBinding
from src.metrics.charts import build_dashboard
from src.metrics.config_loader import ChartConfig, get_chart_config
from src.metrics.errors import (
    MetricsError,
    NetworkError,
    NotFoundError,
    SchemaError,
    TransformError,
    ValidationAnomaly,
)
from src.metrics.gateway import DataGateway, GatewayConfig

__all__ = [
    "ActivityRecord",
    "AggregateState",
    "BindingState",
    "BindingStatus",
    "CanonicalUserBundle",
    "ChartConfig",
    "DashboardAggregator",
    "DataGateway",
    "GatewayConfig",
    "KeyNutrition",
    "MetricsError",
    "MetricsSource",
    "NetworkError",
    "NotFoundError",
    "PerformanceRecord",
    "SchemaError",
    "SessionRecord",
    "StableAsyncBinding",
    "TransformError",
    "UserProfile",
    "UserSummary",
    "ValidationAnomaly",
    "aggregate",
    "build_dashboard",
    "get_chart_config",
]
