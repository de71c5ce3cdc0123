"""Shared fixtures and raw payloads for metrics layer tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from src.metrics.config_loader import ChartConfig, load_chart_config
from src.metrics.gateway import DataGateway, GatewayConfig
from src.metrics.sources.mock import MockSource

# Fixtures directory
FIXTURES_DIR = Path(__file__).parent / "fixtures"


def load_fixture(name: str) -> dict:
    return json.loads((FIXTURES_DIR / name).read_text(encoding="utf-8"))


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def chart_config() -> ChartConfig:
    """Load the real chart config for tests."""
    return load_chart_config()


# ---------------------------------------------------------------------------
# Raw payload fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def user_18_raw() -> dict:
    return load_fixture("user_18.json")


@pytest.fixture
def user_12_raw() -> dict:
    return load_fixture("user_12.json")


@pytest.fixture
def activity_18_raw() -> dict:
    return load_fixture("activity_18.json")


@pytest.fixture
def partial_sessions_raw() -> dict:
    return load_fixture("average_sessions_partial.json")


@pytest.fixture
def performance_18_raw() -> dict:
    return load_fixture("performance_18.json")


@pytest.fixture
def performance_unknown_kind_raw() -> dict:
    return load_fixture("performance_unknown_kind.json")


# ---------------------------------------------------------------------------
# Source / gateway fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def fixture_data(
    user_18_raw: dict,
    user_12_raw: dict,
    activity_18_raw: dict,
    partial_sessions_raw: dict,
    performance_18_raw: dict,
    performance_unknown_kind_raw: dict,
) -> dict:
    """Mock data set in the ``USER_*`` layout built from the JSON fixtures.

    User 18 has all four payloads (partial average sessions); user 12 has
    only the user payload and a performance payload with an unmapped id.
    """
    return {
        "USER_MAIN_DATA": [user_18_raw, user_12_raw],
        "USER_ACTIVITY": [activity_18_raw],
        "USER_AVERAGE_SESSIONS": [partial_sessions_raw],
        "USER_PERFORMANCE": [performance_18_raw, performance_unknown_kind_raw],
    }


@pytest.fixture
def fixture_gateway(fixture_data: dict) -> DataGateway:
    """Gateway over the test fixtures via the mock source."""
    return DataGateway(GatewayConfig(origin="mock"), source=MockSource(data=fixture_data))


@pytest.fixture
def mock_gateway() -> DataGateway:
    """Gateway over the bundled mock data."""
    return DataGateway(GatewayConfig(origin="mock"))
