"""Chart projections derived from canonical records.

Transformers are pure and stateless: they read already-normalized records
and return new lists of chart points.  They never perform I/O and never
mutate their input.

    ActivityTransformer     sequential 1..n x-axis for the daily bar chart
    SessionsTransformer     7 weekdays padded with two ghost points (0 and 8)
    PerformanceTransformer  six radar axes in display order with labels
    ScoreTransformer        goal score as a clamped 0–100 percentage
    NutritionTransformer    four stat cards with display strings
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from src.metrics.base import (
    PERFORMANCE_DISPLAY_ORDER,
    WEEKDAYS,
    ActivityRecord,
    KeyNutrition,
    PerformanceRecord,
    SessionRecord,
    UserProfile,
    UserSummary,
)
from src.metrics.config_loader import ChartConfig, get_chart_config
from src.metrics.errors import TransformError

#: Position of the leading and trailing ghost points on the sessions x-axis.
GHOST_START = 0
GHOST_END = len(WEEKDAYS) + 1


# ---------------------------------------------------------------------------
# Chart point types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ActivityPoint:
    index: int
    weight_kg: float
    calories_burned: int
    display_index: str


@dataclass(frozen=True)
class SessionPoint:
    """One point of the average-sessions line chart.

    Ghost points sit at positions 0 and 8 and copy the duration of the
    adjacent real weekday so the drawn curve starts and ends flat.  The
    renderer hides their markers and tick labels.
    """

    position: int
    duration_minutes: float
    is_ghost: bool = False
    label: str = ""


@dataclass(frozen=True)
class PerformancePoint:
    category: str
    label: str
    value: float
    full_mark: float


@dataclass(frozen=True)
class ScorePoint:
    percentage: int


@dataclass(frozen=True)
class NutritionCardPoint:
    key: str
    label: str
    value: int
    unit: str
    display: str


# ---------------------------------------------------------------------------
# Transformers
# ---------------------------------------------------------------------------


class ActivityTransformer:
    """Map daily activity onto sequential chart positions."""

    @staticmethod
    def format(record: ActivityRecord) -> list[ActivityPoint]:
        """Return one point per entry, indexed 1..n regardless of the date label."""
        return [
            ActivityPoint(
                index=i,
                weight_kg=entry.weight_kg,
                calories_burned=entry.calories_burned,
                display_index=str(i),
            )
            for i, entry in enumerate(record.entries, start=1)
        ]


class SessionsTransformer:
    """Pad the weekly session curve with boundary ghost points."""

    def __init__(self, config: ChartConfig | None = None) -> None:
        self._config = config or get_chart_config()

    def add_ghost_points(self, record: SessionRecord) -> list[SessionPoint]:
        """Return 9 points: ghost, Monday..Sunday, ghost.

        Args:
            record: Canonical session record with exactly the seven weekdays
                    in ascending order.

        Returns:
            Points at positions 0..8.  Position 0 copies Monday's duration,
            position 8 copies Sunday's; both carry ``is_ghost=True``.

        Raises:
            TransformError: If the record is not the canonical seven-weekday
                sequence.  This also rejects a second application, since
                padded output never has that shape.
        """
        weekdays = tuple(getattr(entry, "weekday", None) for entry in record.entries)
        if weekdays != WEEKDAYS:
            raise TransformError(
                f"Ghost points need the 7 canonical weekdays in order, got {list(weekdays)}"
            )

        real = [
            SessionPoint(
                position=entry.weekday,
                duration_minutes=entry.duration_minutes,
                label=self._config.sessions.label(entry.weekday),
            )
            for entry in record.entries
        ]
        return [
            SessionPoint(position=GHOST_START, duration_minutes=real[0].duration_minutes, is_ghost=True),
            *real,
            SessionPoint(position=GHOST_END, duration_minutes=real[-1].duration_minutes, is_ghost=True),
        ]


class PerformanceTransformer:
    """Order and label the six performance categories for the radar chart."""

    def __init__(self, config: ChartConfig | None = None) -> None:
        self._config = config or get_chart_config()

    def format(self, record: PerformanceRecord) -> list[PerformancePoint]:
        perf = self._config.performance
        return [
            PerformancePoint(
                category=category,
                label=perf.label(category),
                value=record.value_for(category),
                full_mark=perf.full_mark,
            )
            for category in PERFORMANCE_DISPLAY_ORDER
        ]


class ScoreTransformer:
    @staticmethod
    def percentage(score: float) -> int:
        """Convert a [0, 1] goal score to a whole percentage in [0, 100].

        Rounds half up, matching how the dashboard has always displayed the
        score (0.125 → 13).  Out-of-range input is clamped and non-finite
        input yields 0.
        """
        try:
            value = float(score)
        except (TypeError, ValueError):
            return 0
        if not math.isfinite(value):
            return 0
        return int(min(max(math.floor(value * 100 + 0.5), 0), 100))

    @classmethod
    def format(cls, score: float) -> ScorePoint:
        return ScorePoint(percentage=cls.percentage(score))


class NutritionTransformer:
    """Build the four nutrition stat cards shown beside the charts."""

    def __init__(self, config: ChartConfig | None = None) -> None:
        self._config = config or get_chart_config()

    def format(self, nutrition: KeyNutrition | None) -> list[NutritionCardPoint]:
        placeholder = self._config.nutrition.placeholder
        cards = []
        for card in self._config.nutrition.cards:
            value = getattr(nutrition, card.key, 0) if nutrition is not None else 0
            display = f"{value:,}{card.unit}" if value else placeholder
            cards.append(
                NutritionCardPoint(
                    key=card.key, label=card.label, value=value, unit=card.unit, display=display
                )
            )
        return cards


def greeting_name(profile: UserProfile | None, config: ChartConfig | None = None) -> str:
    """Return the first name to greet, or the configured fallback."""
    if profile is not None and profile.first_name:
        return profile.first_name
    return (config or get_chart_config()).fallback_name


@dataclass(frozen=True)
class UserOverview:
    """Header block of the dashboard: who, and today's nutrition cards."""

    profile: UserProfile
    greeting_name: str
    percentage: int
    nutrition: tuple[NutritionCardPoint, ...]


class UserTransformer:
    def __init__(self, config: ChartConfig | None = None) -> None:
        self._config = config or get_chart_config()
        self._nutrition = NutritionTransformer(self._config)

    def format(self, summary: UserSummary) -> UserOverview:
        return UserOverview(
            profile=summary.profile,
            greeting_name=greeting_name(summary.profile, self._config),
            percentage=ScoreTransformer.percentage(summary.goal_score),
            nutrition=tuple(self._nutrition.format(summary.key_nutrition)),
        )
