"""Canonical data models and the source interface for the SportSee metrics layer.

Every origin (mock fixtures or the remote service) returns raw JSON whose
shape differs per entity.  The normalizer turns that JSON into the frozen
dataclasses defined here, which are the single contract consumed by the
transformers, bindings and HTTP layer.

Category and weekday constants also live here because both the normalizer
and the transformers depend on them.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

#: Canonical storage order of the six performance categories.
PERFORMANCE_CATEGORIES: tuple[str, ...] = (
    "cardio",
    "energy",
    "endurance",
    "strength",
    "speed",
    "intensity",
)

#: Order in which the radar chart walks its axes.
PERFORMANCE_DISPLAY_ORDER: tuple[str, ...] = (
    "intensity",
    "speed",
    "strength",
    "endurance",
    "energy",
    "cardio",
)

#: Label used when a performance entry references an id missing from the mapping.
UNKNOWN_CATEGORY = "unknown"

#: ISO weekdays, Monday first.
WEEKDAYS: tuple[int, ...] = (1, 2, 3, 4, 5, 6, 7)


# ---------------------------------------------------------------------------
# Canonical models
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class UserProfile:
    """Identity block of a user.

    Attributes:
        id:         Positive user id.
        first_name: Given name ("" when the source omits it).
        last_name:  Family name ("" when the source omits it).
        age:        Age in years (0 when unknown).
    """

    id: int
    first_name: str = ""
    last_name: str = ""
    age: int = 0


@dataclass(frozen=True)
class KeyNutrition:
    """Daily nutrition counters.  Every counter is a non-negative integer."""

    calorie_count: int = 0
    protein_count: int = 0
    carbohydrate_count: int = 0
    lipid_count: int = 0


@dataclass(frozen=True)
class UserSummary:
    """Normalized result of the ``/user/:id`` endpoint.

    Attributes:
        profile:       Identity block.
        key_nutrition: Nutrition counters.
        goal_score:    Daily goal completion in [0, 1].
    """

    profile: UserProfile
    key_nutrition: KeyNutrition
    goal_score: float = 0.0


@dataclass(frozen=True)
class ActivityEntry:
    day_label: str
    weight_kg: float
    calories_burned: int


@dataclass(frozen=True)
class ActivityRecord:
    """Daily activity, in the order the source delivered it."""

    user_id: int
    entries: tuple[ActivityEntry, ...] = ()


@dataclass(frozen=True)
class SessionEntry:
    weekday: int
    duration_minutes: float


@dataclass(frozen=True)
class SessionRecord:
    """Average session length per weekday.

    After normalization ``entries`` always holds exactly seven items, one
    per weekday 1..7 in ascending order.
    """

    user_id: int
    entries: tuple[SessionEntry, ...] = ()

    def duration_for(self, weekday: int) -> float:
        for entry in self.entries:
            if entry.weekday == weekday:
                return entry.duration_minutes
        return 0


@dataclass(frozen=True)
class PerformanceEntry:
    """One raw performance value with its resolved category label."""

    category: str
    value: float
    kind_id: str | None = None


@dataclass(frozen=True)
class PerformanceRecord:
    """Performance values for the six fixed categories.

    Attributes:
        user_id: Owner of the record.
        values:  Read-only category → value, in canonical storage order
                 (``PERFORMANCE_CATEGORIES``).  Missing categories are 0.
        entries: Every raw entry with its resolved label, including entries
                 whose id resolved to ``UNKNOWN_CATEGORY``.
    """

    user_id: int
    values: Mapping[str, float] = field(default_factory=dict)
    entries: tuple[PerformanceEntry, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    def value_for(self, category: str) -> float:
        return self.values.get(category, 0)


@dataclass(frozen=True)
class CanonicalUserBundle:
    """Everything the dashboard needs for one user, built fresh per fetch."""

    user: UserSummary
    activity: ActivityRecord
    sessions: SessionRecord
    performance: PerformanceRecord

    @property
    def user_id(self) -> int:
        return self.user.profile.id


# ---------------------------------------------------------------------------
# Source interface
# ---------------------------------------------------------------------------


class MetricsSource(ABC):
    """Abstract origin of raw SportSee payloads.

    Implementations return the raw (pre-normalization) JSON of the four
    endpoints.  They raise ``NotFoundError`` for unknown users and
    ``NetworkError`` for transport failures; they never normalize.

    Subclasses must implement:
        - fetch_user()
        - fetch_activity()
        - fetch_average_sessions()
        - fetch_performance()
    """

    #: Origin slug accepted by ``GatewayConfig.origin``.
    ORIGIN: str = "unknown"

    @abstractmethod
    async def fetch_user(self, user_id: int) -> object:
        """Return the raw ``/user/:id`` payload."""

    @abstractmethod
    async def fetch_activity(self, user_id: int) -> object:
        """Return the raw ``/user/:id/activity`` payload."""

    @abstractmethod
    async def fetch_average_sessions(self, user_id: int) -> object:
        """Return the raw ``/user/:id/average-sessions`` payload."""

    @abstractmethod
    async def fetch_performance(self, user_id: int) -> object:
        """Return the raw ``/user/:id/performance`` payload."""

    async def aclose(self) -> None:
        """Release any resources held by the source.  No-op by default."""
        return None


# ---------------------------------------------------------------------------
# Shared coercion helpers
# ---------------------------------------------------------------------------


def safe_int(value: object) -> int | None:
    """Safely coerce a value to int, returning None on failure."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)  # accepts "12" and 12.0
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return int(number)


def safe_float(value: object) -> float | None:
    """Safely coerce a value to a finite float, returning None on failure."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None
