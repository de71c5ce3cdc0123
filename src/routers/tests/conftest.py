"""Fixtures for API tests: the app wired to a mock-origin gateway."""

from __future__ import annotations

from collections.abc import Iterator

import httpx
import pytest
from fastapi.testclient import TestClient

from src.dependencies import get_gateway
from src.main import create_app
from src.metrics.gateway import DataGateway, GatewayConfig
from src.metrics.sources.mock import MockSource, load_mock_data
from src.metrics.sources.remote import RemoteSource


def _client_for(gateway: DataGateway) -> Iterator[TestClient]:
    app = create_app()
    app.dependency_overrides[get_gateway] = lambda: gateway
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def client() -> Iterator[TestClient]:
    """Client over the bundled mock data (users 12 and 18)."""
    yield from _client_for(DataGateway(GatewayConfig(origin="mock")))


@pytest.fixture
def partial_client() -> Iterator[TestClient]:
    """Client whose mock data lacks user 12's activity and sessions."""
    data = load_mock_data()
    for collection in ("USER_ACTIVITY", "USER_AVERAGE_SESSIONS"):
        data[collection] = [item for item in data[collection] if item["userId"] != 12]
    yield from _client_for(DataGateway(source=MockSource(data=data)))


@pytest.fixture
def unreachable_client() -> Iterator[TestClient]:
    """Client whose remote origin refuses every connection."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    source = RemoteSource(http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))
    yield from _client_for(DataGateway(GatewayConfig(origin="remote"), source=source))
