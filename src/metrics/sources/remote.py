"""Remote origin: the SportSee backend over HTTP.

API base (default): http://localhost:3000

Endpoints used:
    /user/:id                   — identity, goal score, nutrition counters
    /user/:id/activity          — daily weight and calories
    /user/:id/average-sessions  — average session length per weekday
    /user/:id/performance       — performance values per category id

The reference backend wraps every payload as ``{"data": {...}}``; the
envelope is removed here so the gateway only sees the bare shapes.
"""

from __future__ import annotations

import logging

import httpx

from src.metrics.base import MetricsSource
from src.metrics.errors import NetworkError, NotFoundError, SchemaError

logger = logging.getLogger("sportsee.metrics.sources.remote")

DEFAULT_BASE_URL = "http://localhost:3000"
DEFAULT_TIMEOUT_SECONDS = 5.0


def unwrap_envelope(payload: object) -> object:
    """Strip a ``{"data": {...}}`` envelope if that is all the payload holds.

    A performance payload also has a ``data`` key (a list, next to
    ``kind``); it is left untouched.
    """
    if isinstance(payload, dict) and set(payload) == {"data"} and isinstance(payload["data"], dict):
        return payload["data"]
    return payload


class RemoteSource(MetricsSource):
    """Fetch raw payloads from the SportSee HTTP API.

    Args:
        base_url:        Backend root URL.
        timeout_seconds: Per-request timeout.
        http_client:     Optional pre-configured httpx client (for testing).
                         When omitted the source owns a client and closes it
                         in ``aclose()``.
    """

    ORIGIN = "remote"

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._http_client = http_client
        self._owns_client = http_client is None

    @property
    def base_url(self) -> str:
        return self._base_url

    async def fetch_user(self, user_id: int) -> object:
        return await self._get(f"/user/{user_id}", user_id, "user")

    async def fetch_activity(self, user_id: int) -> object:
        return await self._get(f"/user/{user_id}/activity", user_id, "activity")

    async def fetch_average_sessions(self, user_id: int) -> object:
        return await self._get(f"/user/{user_id}/average-sessions", user_id, "average_sessions")

    async def fetch_performance(self, user_id: int) -> object:
        return await self._get(f"/user/{user_id}/performance", user_id, "performance")

    async def aclose(self) -> None:
        if self._owns_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    # ------------------------------------------------------------------
    # Private HTTP helper
    # ------------------------------------------------------------------

    def _client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._timeout)
        return self._http_client

    async def _get(self, path: str, user_id: int, resource: str) -> object:
        """GET ``path`` and return the decoded, unwrapped JSON body.

        Raises:
            NotFoundError: On HTTP 404.
            NetworkError:  On transport failures, timeouts and other non-2xx.
            SchemaError:   If the body is not JSON.
        """
        url = f"{self._base_url}{path}"
        logger.debug("Remote: GET %s", url)
        try:
            response = await self._client().get(url)
        except httpx.HTTPError as exc:
            logger.warning("Remote: GET %s failed: %s", url, exc)
            raise NetworkError(f"Could not reach {url}: {exc}") from exc

        if response.status_code == 404:
            raise NotFoundError(user_id, resource)
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise NetworkError(f"{url} answered HTTP {response.status_code}") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise SchemaError(f"{url} did not return JSON") from exc
        return unwrap_envelope(payload)
