"""Load, validate, and hot-reload the SportSee chart configuration.

The config lives in ``chart_config.yaml`` alongside this module.  It holds
presentation constants only (radar scale, display labels, nutrition
card units); canonical category names, the radar axis order and weekday
numbering are fixed in ``src.metrics.base`` and are not configurable.

Usage::

    from src.metrics.config_loader import get_chart_config

    config = get_chart_config()
    config.performance.label("intensity")   # "Intensité"
    config.performance.full_mark            # 250
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from pathlib import Path

import yaml

from src.metrics.base import PERFORMANCE_CATEGORIES, WEEKDAYS

logger = logging.getLogger("sportsee.metrics.config")

# Path to the YAML file sitting next to this module
_CONFIG_PATH = Path(__file__).parent / "chart_config.yaml"

_NUTRITION_KEYS = ("calorie_count", "protein_count", "carbohydrate_count", "lipid_count")


# ---------------------------------------------------------------------------
# Typed config sections
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PerformanceChartConfig:
    """Radar chart settings."""

    full_mark: float
    labels: dict[str, str]

    def label(self, category: str) -> str:
        return self.labels.get(category, category)


@dataclass(frozen=True)
class SessionsChartConfig:
    weekday_labels: tuple[str, ...]

    def label(self, weekday: int) -> str:
        if 1 <= weekday <= len(self.weekday_labels):
            return self.weekday_labels[weekday - 1]
        return ""


@dataclass(frozen=True)
class NutritionCard:
    key: str
    label: str
    unit: str


@dataclass(frozen=True)
class NutritionConfig:
    placeholder: str
    cards: tuple[NutritionCard, ...]


@dataclass(frozen=True)
class ChartConfig:
    """Complete, validated chart configuration.

    Attributes:
        version:        Config schema version string.
        performance:    Radar chart scale and labels.
        sessions:       Weekday tick labels.
        nutrition:      Stat card definitions and the empty-value placeholder.
        fallback_name:  Greeting name used when a profile has no first name.
    """

    version: str
    performance: PerformanceChartConfig
    sessions: SessionsChartConfig
    nutrition: NutritionConfig
    fallback_name: str


# ---------------------------------------------------------------------------
# Loader / validation
# ---------------------------------------------------------------------------


class ConfigValidationError(ValueError):
    """Raised when chart_config.yaml fails validation."""


def _load_yaml(path: Path) -> dict:
    """Read and parse a YAML file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigValidationError: If the YAML is malformed.
    """
    if not path.exists():
        raise FileNotFoundError(f"Chart config not found: {path}")

    with path.open("r", encoding="utf-8") as fh:
        try:
            return yaml.safe_load(fh) or {}
        except yaml.YAMLError as exc:
            raise ConfigValidationError(f"YAML parse error in {path}: {exc}") from exc


def _validate_and_build(raw: dict) -> ChartConfig:
    """Validate the raw YAML dict and construct a ChartConfig.

    Raises:
        ConfigValidationError: If required fields are missing or invalid.
    """
    errors: list[str] = []

    version = str(raw.get("version", "1.0"))

    # ── Performance ──
    perf_raw = raw.get("performance") or {}
    try:
        full_mark = float(perf_raw.get("full_mark", 250))
        if full_mark <= 0:
            errors.append(f"performance.full_mark must be positive, got {full_mark}")
    except (TypeError, ValueError):
        errors.append(f"performance.full_mark must be a number, got {perf_raw.get('full_mark')!r}")
        full_mark = 250.0
    labels_raw = perf_raw.get("labels") or {}
    if not isinstance(labels_raw, dict):
        errors.append("performance.labels must be a mapping of category→label")
        labels_raw = {}
    unknown = set(labels_raw) - set(PERFORMANCE_CATEGORIES)
    if unknown:
        errors.append(f"performance.labels has unknown categories: {sorted(unknown)}")
    labels = {category: str(labels_raw.get(category, category)) for category in PERFORMANCE_CATEGORIES}

    # ── Sessions ──
    sessions_raw = raw.get("sessions") or {}
    weekday_labels = tuple(str(label) for label in sessions_raw.get("weekday_labels") or ())
    if weekday_labels and len(weekday_labels) != len(WEEKDAYS):
        errors.append(
            f"sessions.weekday_labels must have {len(WEEKDAYS)} entries, got {len(weekday_labels)}"
        )

    # ── Nutrition ──
    nutrition_raw = raw.get("nutrition") or {}
    cards: list[NutritionCard] = []
    for i, card in enumerate(nutrition_raw.get("cards") or []):
        if not isinstance(card, dict) or "key" not in card:
            errors.append(f"nutrition.cards[{i}] must be a mapping with a 'key'")
            continue
        if card["key"] not in _NUTRITION_KEYS:
            errors.append(f"nutrition.cards[{i}].key {card['key']!r} is not a nutrition counter")
            continue
        cards.append(
            NutritionCard(
                key=card["key"],
                label=str(card.get("label", card["key"])),
                unit=str(card.get("unit", "")),
            )
        )

    greeting_raw = raw.get("greeting") or {}

    if errors:
        raise ConfigValidationError(
            f"chart_config.yaml has {len(errors)} validation error(s):\n"
            + "\n".join(f"  • {e}" for e in errors)
        )

    return ChartConfig(
        version=version,
        performance=PerformanceChartConfig(
            full_mark=full_mark,
            labels=labels,
        ),
        sessions=SessionsChartConfig(weekday_labels=weekday_labels),
        nutrition=NutritionConfig(
            placeholder=str(nutrition_raw.get("placeholder", "---")),
            cards=tuple(cards),
        ),
        fallback_name=str(greeting_raw.get("fallback_name", "Utilisateur")),
    )


def load_chart_config(path: Path | None = None) -> ChartConfig:
    """Load and validate the chart config from disk.

    Args:
        path: Override path to YAML. Uses the bundled chart_config.yaml by default.
    """
    target = path or _CONFIG_PATH
    raw = _load_yaml(target)
    config = _validate_and_build(raw)
    logger.info("Loaded chart config v%s from %s", config.version, target)
    return config


# ---------------------------------------------------------------------------
# Global singleton with hot-reload support
# ---------------------------------------------------------------------------

_config: ChartConfig | None = None
_config_lock = threading.Lock()


def get_chart_config() -> ChartConfig:
    """Return the global ChartConfig singleton, loading it on first call.

    Thread-safe.  Use ``reload_chart_config()`` to refresh after YAML changes.
    """
    global _config
    if _config is None:
        with _config_lock:
            if _config is None:
                _config = load_chart_config()
    return _config


def reload_chart_config(path: Path | None = None) -> ChartConfig:
    """Reload the chart config from disk and replace the global singleton.

    If validation fails, the old config is retained and the error is re-raised.

    Raises:
        ConfigValidationError: If the new config is invalid.
        FileNotFoundError:     If the config file is missing.
    """
    global _config
    new_config = load_chart_config(path)
    with _config_lock:
        old_version = _config.version if _config else "none"
        _config = new_config
    logger.info("Reloaded chart config: %s → %s", old_version, new_config.version)
    return new_config
