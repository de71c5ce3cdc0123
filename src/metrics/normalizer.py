"""Map raw SportSee payloads onto the canonical schema.

The two origins disagree on field names and structure for the same
entities.  Each ``normalize_*`` function absorbs one of those
inconsistencies with an explicit, enumerated fallback rule:

    goal score     ``todayScore`` → ``score`` → 0 (first present wins)
    sessions       keyed by weekday, last duplicate wins, 0 for missing days
    performance    ids resolved through the ``kind`` mapping (string keys),
                   unresolved ids become "unknown", missing categories 0
    nutrition      missing or negative counters become 0

All functions are pure apart from logging.  Out-of-domain values are
replaced by their default and, when the caller passes an ``anomalies``
list, recorded there as ``ValidationAnomaly`` entries.  Only structurally
unrecoverable input (e.g. a missing ``sessions`` array) raises
``SchemaError``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from src.metrics.base import (
    PERFORMANCE_CATEGORIES,
    UNKNOWN_CATEGORY,
    WEEKDAYS,
    ActivityEntry,
    ActivityRecord,
    CanonicalUserBundle,
    KeyNutrition,
    PerformanceEntry,
    PerformanceRecord,
    SessionEntry,
    SessionRecord,
    UserProfile,
    UserSummary,
    safe_float,
    safe_int,
)
from src.metrics.errors import SchemaError, ValidationAnomaly

logger = logging.getLogger("sportsee.metrics.normalizer")

#: Legacy field names carrying the goal score, in precedence order.
SCORE_FIELDS: tuple[str, ...] = ("todayScore", "score")

_NUTRITION_FIELDS: dict[str, str] = {
    "calorieCount": "calorie_count",
    "proteinCount": "protein_count",
    "carbohydrateCount": "carbohydrate_count",
    "lipidCount": "lipid_count",
}


def _record(
    anomalies: list[ValidationAnomaly] | None,
    entity: str,
    field_name: str,
    raw_value: object,
    replacement: object,
    reason: str,
) -> None:
    logger.debug(
        "Replaced %s.%s=%r with %r (%s)", entity, field_name, raw_value, replacement, reason
    )
    if anomalies is not None:
        anomalies.append(
            ValidationAnomaly(
                entity=entity,
                field=field_name,
                raw_value=raw_value,
                replacement=replacement,
                reason=reason,
            )
        )


def _as_mapping(raw: object) -> Mapping:
    return raw if isinstance(raw, Mapping) else {}


def _non_negative(
    value: object,
    entity: str,
    field_name: str,
    anomalies: list[ValidationAnomaly] | None,
    coerce=safe_int,
) -> int | float:
    """Coerce ``value`` to a number >= 0, defaulting to 0."""
    if value is None:
        return 0
    number = coerce(value)
    if number is None:
        _record(anomalies, entity, field_name, value, 0, "not a number")
        return 0
    if number < 0:
        _record(anomalies, entity, field_name, value, 0, "negative value")
        return 0
    return number


# ---------------------------------------------------------------------------
# User
# ---------------------------------------------------------------------------


def normalize_score(raw: object) -> float:
    """Return the daily goal score from a raw user payload.

    The first of ``todayScore`` / ``score`` holding a number wins, so a
    present ``todayScore`` of 0 is kept even when ``score`` is set.
    Never raises; returns 0.0 when neither field is usable.
    """
    data = _as_mapping(raw)
    for name in SCORE_FIELDS:
        value = safe_float(data.get(name))
        if value is not None:
            return value
    return 0.0


def normalize_user(raw: object) -> UserProfile:
    """Flatten ``{id, userInfos: {...}}`` into a UserProfile."""
    data = _as_mapping(raw)
    infos = _as_mapping(data.get("userInfos"))
    user_id = safe_int(data.get("id"))
    if user_id is None:
        raise SchemaError("User payload has no usable 'id'")
    return UserProfile(
        id=user_id,
        first_name=str(infos.get("firstName") or ""),
        last_name=str(infos.get("lastName") or ""),
        age=safe_int(infos.get("age")) or 0,
    )


def normalize_key_nutrition(
    raw: object, anomalies: list[ValidationAnomaly] | None = None
) -> KeyNutrition:
    """Rename ``keyData`` counters; missing or invalid counters become 0."""
    data = _as_mapping(raw)
    counters = {
        target: _non_negative(data.get(source), "key_nutrition", source, anomalies)
        for source, target in _NUTRITION_FIELDS.items()
    }
    return KeyNutrition(**counters)


def normalize_user_summary(
    raw: object, anomalies: list[ValidationAnomaly] | None = None
) -> UserSummary:
    """Normalize a full ``/user/:id`` payload."""
    data = _as_mapping(raw)
    score = normalize_score(data)
    if not 0.0 <= score <= 1.0:
        clamped = min(max(score, 0.0), 1.0)
        _record(anomalies, "user", "score", score, clamped, "score outside [0, 1]")
        score = clamped
    return UserSummary(
        profile=normalize_user(data),
        key_nutrition=normalize_key_nutrition(data.get("keyData"), anomalies),
        goal_score=score,
    )


# ---------------------------------------------------------------------------
# Activity
# ---------------------------------------------------------------------------


def normalize_activity(
    raw: object, anomalies: list[ValidationAnomaly] | None = None
) -> ActivityRecord:
    """Rename ``{day, kilogram, calories}`` entries, keeping source order."""
    data = _as_mapping(raw)
    sessions = data.get("sessions")
    if not isinstance(sessions, list):
        raise SchemaError("Activity payload has no 'sessions' list")

    entries = []
    for item in sessions:
        item = _as_mapping(item)
        entries.append(
            ActivityEntry(
                day_label=str(item.get("day") or ""),
                weight_kg=_non_negative(
                    item.get("kilogram"), "activity", "kilogram", anomalies, coerce=safe_float
                ),
                calories_burned=_non_negative(
                    item.get("calories"), "activity", "calories", anomalies
                ),
            )
        )
    return ActivityRecord(user_id=safe_int(data.get("userId")) or 0, entries=tuple(entries))


# ---------------------------------------------------------------------------
# Average sessions
# ---------------------------------------------------------------------------


def normalize_sessions(
    raw_sessions: object,
    user_id: int = 0,
    anomalies: list[ValidationAnomaly] | None = None,
) -> SessionRecord:
    """Build exactly seven weekday entries from a partial session list.

    Args:
        raw_sessions: The raw ``sessions`` array (``[{day, sessionLength}]``).
        user_id:      Owner of the record.
        anomalies:    Optional sink for recovered out-of-domain values.

    Returns:
        SessionRecord with weekdays 1..7 in ascending order.  Weekdays the
        source omits get ``duration_minutes = 0``.  When a weekday appears
        more than once the last occurrence in input order wins.

    Raises:
        SchemaError: If ``raw_sessions`` is not a list.
    """
    if not isinstance(raw_sessions, list):
        raise SchemaError("Average-sessions payload has no 'sessions' list")

    by_weekday: dict[int, float] = {}
    for item in raw_sessions:
        item = _as_mapping(item)
        weekday = safe_int(item.get("day"))
        if weekday not in WEEKDAYS:
            _record(anomalies, "sessions", "day", item.get("day"), None, "weekday outside 1..7")
            continue
        if weekday in by_weekday:
            logger.debug("Duplicate weekday %d in sessions; keeping last occurrence", weekday)
        by_weekday[weekday] = _non_negative(
            item.get("sessionLength"), "sessions", "sessionLength", anomalies, coerce=safe_float
        )

    return SessionRecord(
        user_id=user_id,
        entries=tuple(
            SessionEntry(weekday=day, duration_minutes=by_weekday.get(day, 0))
            for day in WEEKDAYS
        ),
    )


# ---------------------------------------------------------------------------
# Performance
# ---------------------------------------------------------------------------


def normalize_performance(
    kind: object,
    data: object,
    user_id: int = 0,
    anomalies: list[ValidationAnomaly] | None = None,
) -> PerformanceRecord:
    """Resolve performance ids to categories and fill the six fixed slots.

    JSON object keys always arrive as strings while ``data[].kind`` ids are
    integers, so both sides are compared as strings.  An id missing from
    the mapping resolves to ``"unknown"``; the entry is kept in
    ``entries`` but fills no category.  For each category the first
    matching entry wins; categories with no entry are 0.

    Raises:
        SchemaError: If ``data`` is not a list.
    """
    if not isinstance(data, list):
        raise SchemaError("Performance payload has no 'data' list")
    labels = {str(key): str(label).lower() for key, label in _as_mapping(kind).items()}

    entries = []
    for item in data:
        item = _as_mapping(item)
        raw_id = item.get("kind")
        kind_id = None if raw_id is None else str(raw_id)
        label = labels.get(kind_id, UNKNOWN_CATEGORY) if kind_id is not None else UNKNOWN_CATEGORY
        if label == UNKNOWN_CATEGORY:
            logger.debug("Performance id %r missing from kind mapping", raw_id)
        value = safe_float(item.get("value"))
        if value is None:
            _record(anomalies, "performance", "value", item.get("value"), 0, "not a number")
            value = 0.0
        entries.append(PerformanceEntry(category=label, value=value, kind_id=kind_id))

    values: dict[str, float] = {}
    for category in PERFORMANCE_CATEGORIES:
        match = next((e for e in entries if e.category == category), None)
        values[category] = match.value if match else 0
    return PerformanceRecord(user_id=user_id, values=values, entries=tuple(entries))


# ---------------------------------------------------------------------------
# Bundle
# ---------------------------------------------------------------------------


def normalize_bundle(
    raw_user: object,
    raw_activity: object,
    raw_sessions: object,
    raw_performance: object,
    anomalies: list[ValidationAnomaly] | None = None,
) -> CanonicalUserBundle:
    """Normalize the four raw payloads of one user into a fresh bundle."""
    user = normalize_user_summary(raw_user, anomalies)
    sessions_payload = _as_mapping(raw_sessions)
    performance_payload = _as_mapping(raw_performance)
    return CanonicalUserBundle(
        user=user,
        activity=normalize_activity(raw_activity, anomalies),
        sessions=normalize_sessions(
            sessions_payload.get("sessions"), user.profile.id, anomalies
        ),
        performance=normalize_performance(
            performance_payload.get("kind"),
            performance_payload.get("data"),
            user.profile.id,
            anomalies,
        ),
    )
