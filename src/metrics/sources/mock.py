"""Mock origin backed by the bundled SportSee fixtures.

The fixtures reproduce the raw payloads of the remote service exactly,
including its inconsistencies (``score`` vs ``todayScore``, string keys in
the performance ``kind`` mapping), so the normalizer sees the same shapes
in both origins.  Every call returns a deep copy.
"""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path

from src.metrics.base import MetricsSource
from src.metrics.errors import NotFoundError, SchemaError

logger = logging.getLogger("sportsee.metrics.sources.mock")

_FIXTURES_PATH = Path(__file__).parent / "fixtures" / "mock_data.json"

_COLLECTIONS = {
    "user": ("USER_MAIN_DATA", "id"),
    "activity": ("USER_ACTIVITY", "userId"),
    "average_sessions": ("USER_AVERAGE_SESSIONS", "userId"),
    "performance": ("USER_PERFORMANCE", "userId"),
}


def load_mock_data(path: Path | None = None) -> dict:
    """Read a fixture file with the four ``USER_*`` collections."""
    target = path or _FIXTURES_PATH
    try:
        data = json.loads(target.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise SchemaError(f"Mock fixtures at {target} are not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise SchemaError(f"Mock fixtures at {target} must be a JSON object")
    return data


class MockSource(MetricsSource):
    """Serve raw payloads from static fixtures.

    Args:
        data: Optional in-memory fixture set with the same ``USER_*`` layout
              as ``fixtures/mock_data.json`` (used by tests).
        path: Optional fixture file to load instead of the bundled one.
    """

    ORIGIN = "mock"

    def __init__(self, data: dict | None = None, path: Path | None = None) -> None:
        self._data = data if data is not None else load_mock_data(path)

    def _lookup(self, resource: str, user_id: int) -> object:
        collection, id_field = _COLLECTIONS[resource]
        for item in self._data.get(collection) or []:
            if isinstance(item, dict) and item.get(id_field) == user_id:
                logger.debug("Mock: serving %s for user %s", resource, user_id)
                return copy.deepcopy(item)
        raise NotFoundError(user_id, resource)

    async def fetch_user(self, user_id: int) -> object:
        return self._lookup("user", user_id)

    async def fetch_activity(self, user_id: int) -> object:
        return self._lookup("activity", user_id)

    async def fetch_average_sessions(self, user_id: int) -> object:
        return self._lookup("average_sessions", user_id)

    async def fetch_performance(self, user_id: int) -> object:
        return self._lookup("performance", user_id)
