"""Data source gateway: origin selection, shape checks, normalization.

The gateway is the only way data leaves an origin.  It

1. picks the mock or remote source from an explicit ``GatewayConfig``
   (there is no process-wide mode flag),
2. fetches the raw payload,
3. checks its basic shape and raises ``SchemaError`` before the normalizer
   ever sees a malformed payload,
4. returns the canonical record.

Several gateways with different configs can coexist, e.g. to compare both
origins side by side::

    mock = DataGateway(GatewayConfig(origin="mock"))
    remote = DataGateway(GatewayConfig(origin="remote"))
    assert (await mock.get_performance(18)) == (await remote.get_performance(18))
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

from src.metrics.base import (
    ActivityRecord,
    CanonicalUserBundle,
    MetricsSource,
    PerformanceRecord,
    SessionRecord,
    UserSummary,
)
from src.metrics.errors import NotFoundError, SchemaError, ValidationAnomaly
from src.metrics.normalizer import (
    normalize_activity,
    normalize_performance,
    normalize_sessions,
    normalize_user_summary,
)
from src.metrics.sources import SOURCE_REGISTRY, RemoteSource, get_source_class
from src.metrics.sources.remote import DEFAULT_BASE_URL, DEFAULT_TIMEOUT_SECONDS

logger = logging.getLogger("sportsee.metrics.gateway")

# Required top-level keys and their JSON types, per endpoint.
_USER_SHAPE: dict[str, type | tuple[type, ...]] = {"id": (int, str), "userInfos": dict}
_ACTIVITY_SHAPE: dict[str, type | tuple[type, ...]] = {"sessions": list}
_SESSIONS_SHAPE: dict[str, type | tuple[type, ...]] = {"sessions": list}
_PERFORMANCE_SHAPE: dict[str, type | tuple[type, ...]] = {"kind": dict, "data": list}


@dataclass(frozen=True)
class GatewayConfig:
    """Gateway settings.

    Attributes:
        origin:          "mock" or "remote".
        base_url:        Remote backend root URL (remote origin only).
        timeout_seconds: Remote request timeout (remote origin only).
    """

    origin: str = "mock"
    base_url: str = DEFAULT_BASE_URL
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    def __post_init__(self) -> None:
        if self.origin not in SOURCE_REGISTRY:
            raise ValueError(
                f"Unknown origin {self.origin!r}; expected one of {sorted(SOURCE_REGISTRY)}"
            )
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be positive, got {self.timeout_seconds}")


def build_source(config: GatewayConfig) -> MetricsSource:
    """Instantiate the source registered for ``config.origin``."""
    source_class = get_source_class(config.origin)
    if issubclass(source_class, RemoteSource):
        return source_class(base_url=config.base_url, timeout_seconds=config.timeout_seconds)
    return source_class()


def check_shape(
    payload: object, shape: dict[str, type | tuple[type, ...]], resource: str
) -> dict:
    """Return ``payload`` if it is an object holding ``shape``'s keys with the right types.

    Raises:
        SchemaError: Listing every missing or mistyped key.
    """
    if not isinstance(payload, dict):
        raise SchemaError(f"{resource} payload must be an object, got {type(payload).__name__}")
    problems = []
    for key, expected in shape.items():
        if key not in payload or payload[key] is None:
            problems.append(f"missing '{key}'")
        elif isinstance(payload[key], bool) or not isinstance(payload[key], expected):
            problems.append(f"'{key}' has type {type(payload[key]).__name__}")
    if problems:
        raise SchemaError(f"Malformed {resource} payload: {', '.join(problems)}")
    return payload


class DataGateway:
    """Fetch normalized SportSee entities from the configured origin.

    Args:
        config: Origin selection and remote settings.
        source: Optional pre-built source (for testing); overrides
                ``config.origin``.
    """

    def __init__(
        self, config: GatewayConfig | None = None, source: MetricsSource | None = None
    ) -> None:
        self._config = config or GatewayConfig()
        self._source = source or build_source(self._config)

    @property
    def config(self) -> GatewayConfig:
        return self._config

    @property
    def origin(self) -> str:
        return self._source.ORIGIN

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def get_user(self, user_id: int) -> UserSummary:
        user_id = self._check_user_id(user_id)
        raw = check_shape(await self._source.fetch_user(user_id), _USER_SHAPE, "user")
        anomalies: list[ValidationAnomaly] = []
        summary = normalize_user_summary(raw, anomalies)
        self._report(anomalies, "user", user_id)
        return summary

    async def get_activity(self, user_id: int) -> ActivityRecord:
        user_id = self._check_user_id(user_id)
        raw = check_shape(await self._source.fetch_activity(user_id), _ACTIVITY_SHAPE, "activity")
        anomalies: list[ValidationAnomaly] = []
        record = normalize_activity(raw, anomalies)
        if not record.user_id:
            record = ActivityRecord(user_id=user_id, entries=record.entries)
        self._report(anomalies, "activity", user_id)
        return record

    async def get_average_sessions(self, user_id: int) -> SessionRecord:
        user_id = self._check_user_id(user_id)
        raw = check_shape(
            await self._source.fetch_average_sessions(user_id), _SESSIONS_SHAPE, "average-sessions"
        )
        anomalies: list[ValidationAnomaly] = []
        record = normalize_sessions(raw["sessions"], user_id, anomalies)
        self._report(anomalies, "average-sessions", user_id)
        return record

    async def get_performance(self, user_id: int) -> PerformanceRecord:
        user_id = self._check_user_id(user_id)
        raw = check_shape(
            await self._source.fetch_performance(user_id), _PERFORMANCE_SHAPE, "performance"
        )
        anomalies: list[ValidationAnomaly] = []
        record = normalize_performance(raw["kind"], raw["data"], user_id, anomalies)
        self._report(anomalies, "performance", user_id)
        return record

    async def get_bundle(self, user_id: int) -> CanonicalUserBundle:
        """Fetch all four entities concurrently and return a fresh bundle.

        The first failure propagates; a bundle is all-or-nothing.
        """
        user, activity, sessions, performance = await asyncio.gather(
            self.get_user(user_id),
            self.get_activity(user_id),
            self.get_average_sessions(user_id),
            self.get_performance(user_id),
        )
        return CanonicalUserBundle(
            user=user, activity=activity, sessions=sessions, performance=performance
        )

    async def aclose(self) -> None:
        await self._source.aclose()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _check_user_id(user_id: object) -> int:
        if isinstance(user_id, bool) or not isinstance(user_id, int) or user_id <= 0:
            raise NotFoundError(user_id)
        return user_id

    def _report(self, anomalies: list[ValidationAnomaly], resource: str, user_id: int) -> None:
        for anomaly in anomalies:
            logger.warning(
                "%s/%s for user %s: %s.%s=%r replaced by %r (%s)",
                self.origin,
                resource,
                user_id,
                anomaly.entity,
                anomaly.field,
                anomaly.raw_value,
                anomaly.replacement,
                anomaly.reason,
            )
