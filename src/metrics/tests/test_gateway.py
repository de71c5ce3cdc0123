"""Tests for the data source gateway and both origins."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from src.metrics.base import CanonicalUserBundle, SessionRecord
from src.metrics.errors import NetworkError, NotFoundError, SchemaError
from src.metrics.gateway import DataGateway, GatewayConfig, build_source, check_shape
from src.metrics.sources import MockSource, RemoteSource, get_source_class
from src.metrics.sources.remote import unwrap_envelope


def _remote_gateway(routes: dict[str, object], status: int = 200) -> DataGateway:
    """Gateway whose remote source answers from ``routes`` (path → JSON body)."""

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path not in routes:
            return httpx.Response(404, json={"message": "can not get user"})
        return httpx.Response(status, json=routes[request.url.path])

    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    source = RemoteSource(base_url="http://sportsee.test", http_client=client)
    return DataGateway(GatewayConfig(origin="remote", base_url="http://sportsee.test"), source=source)


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


class TestGatewayConfig:
    def test_defaults_to_mock(self) -> None:
        assert GatewayConfig().origin == "mock"
        assert DataGateway().origin == "mock"

    def test_remote_origin_builds_remote_source(self) -> None:
        gateway = DataGateway(GatewayConfig(origin="remote", base_url="http://example.test/"))
        assert gateway.origin == "remote"

    def test_unknown_origin_rejected(self) -> None:
        with pytest.raises(ValueError):
            GatewayConfig(origin="cache")

    def test_non_positive_timeout_rejected(self) -> None:
        with pytest.raises(ValueError):
            GatewayConfig(timeout_seconds=0)

    def test_independent_instances(self, fixture_gateway: DataGateway) -> None:
        other = DataGateway(GatewayConfig(origin="remote"))
        assert fixture_gateway.origin == "mock"
        assert other.origin == "remote"

    def test_build_source_uses_registry(self) -> None:
        remote = build_source(GatewayConfig(origin="remote", base_url="http://example.test/"))
        assert isinstance(remote, RemoteSource)
        assert remote.base_url == "http://example.test"
        assert isinstance(build_source(GatewayConfig(origin="mock")), MockSource)

    def test_source_registry(self) -> None:
        assert get_source_class("mock") is MockSource
        assert get_source_class("remote") is RemoteSource
        with pytest.raises(KeyError):
            get_source_class("ftp")


# ---------------------------------------------------------------------------
# Mock origin
# ---------------------------------------------------------------------------


class TestMockOrigin:
    @pytest.mark.asyncio
    async def test_user_18_today_score(self, mock_gateway: DataGateway) -> None:
        summary = await mock_gateway.get_user(18)
        assert summary.profile.first_name == "Cecilia"
        assert summary.goal_score == pytest.approx(0.3)

    @pytest.mark.asyncio
    async def test_user_12_legacy_score(self, mock_gateway: DataGateway) -> None:
        summary = await mock_gateway.get_user(12)
        assert summary.goal_score == pytest.approx(0.12)

    @pytest.mark.asyncio
    async def test_partial_sessions_normalized(self, fixture_gateway: DataGateway) -> None:
        record = await fixture_gateway.get_average_sessions(18)
        assert isinstance(record, SessionRecord)
        assert [e.weekday for e in record.entries] == [1, 2, 3, 4, 5, 6, 7]
        assert record.duration_for(2) == 0

    @pytest.mark.asyncio
    async def test_unknown_user_not_found(self, mock_gateway: DataGateway) -> None:
        with pytest.raises(NotFoundError):
            await mock_gateway.get_user(99)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("user_id", [0, -12, True, "18"])
    async def test_invalid_user_id_not_found(self, mock_gateway: DataGateway, user_id: object) -> None:
        with pytest.raises(NotFoundError):
            await mock_gateway.get_user(user_id)  # type: ignore[arg-type]

    @pytest.mark.asyncio
    async def test_fixtures_not_shared_between_calls(self) -> None:
        source = MockSource()
        first = await source.fetch_user(18)
        first["userInfos"]["firstName"] = "Mutated"
        second = await source.fetch_user(18)
        assert second["userInfos"]["firstName"] == "Cecilia"

    @pytest.mark.asyncio
    async def test_bundle_for_both_mock_users(self, mock_gateway: DataGateway) -> None:
        for user_id in (12, 18):
            bundle = await mock_gateway.get_bundle(user_id)
            assert isinstance(bundle, CanonicalUserBundle)
            assert bundle.user_id == user_id
            assert len(bundle.sessions.entries) == 7
            assert len(bundle.performance.values) == 6

    @pytest.mark.asyncio
    async def test_bundle_fails_as_a_whole(self, fixture_gateway: DataGateway) -> None:
        # user 12 has no activity payload in the test fixtures
        with pytest.raises(NotFoundError):
            await fixture_gateway.get_bundle(12)


# ---------------------------------------------------------------------------
# Shape checks
# ---------------------------------------------------------------------------


class TestShapeChecks:
    def test_check_shape_passes_valid_payload(self) -> None:
        payload = {"sessions": []}
        assert check_shape(payload, {"sessions": list}, "activity") is payload

    def test_check_shape_lists_every_problem(self) -> None:
        with pytest.raises(SchemaError) as exc_info:
            check_shape({"kind": []}, {"kind": dict, "data": list}, "performance")
        message = str(exc_info.value)
        assert "'kind' has type list" in message
        assert "missing 'data'" in message

    @pytest.mark.asyncio
    async def test_malformed_payload_rejected_before_normalizer(self) -> None:
        source = MockSource(data={"USER_AVERAGE_SESSIONS": [{"userId": 18, "sessions": "monday"}]})
        gateway = DataGateway(source=source)
        with pytest.raises(SchemaError):
            await gateway.get_average_sessions(18)

    @pytest.mark.asyncio
    async def test_non_object_payload_rejected(self) -> None:
        source = MagicMock(spec=MockSource)
        source.ORIGIN = "mock"
        source.fetch_performance = AsyncMock(return_value=[1, 2, 3])
        gateway = DataGateway(source=source)
        with pytest.raises(SchemaError):
            await gateway.get_performance(18)


# ---------------------------------------------------------------------------
# Remote origin
# ---------------------------------------------------------------------------


class TestRemoteOrigin:
    @pytest.mark.asyncio
    async def test_fetches_and_normalizes(
        self, user_12_raw: dict, partial_sessions_raw: dict
    ) -> None:
        gateway = _remote_gateway(
            {"/user/12": user_12_raw, "/user/12/average-sessions": partial_sessions_raw}
        )
        summary = await gateway.get_user(12)
        assert summary.goal_score == pytest.approx(0.12)
        sessions = await gateway.get_average_sessions(12)
        assert len(sessions.entries) == 7
        await gateway.aclose()

    @pytest.mark.asyncio
    async def test_unwraps_data_envelope(self, user_18_raw: dict, performance_18_raw: dict) -> None:
        gateway = _remote_gateway(
            {"/user/18": {"data": user_18_raw}, "/user/18/performance": {"data": performance_18_raw}}
        )
        assert (await gateway.get_user(18)).profile.id == 18
        assert (await gateway.get_performance(18)).value_for("cardio") == 200

    @pytest.mark.asyncio
    async def test_404_is_not_found(self) -> None:
        gateway = _remote_gateway({})
        with pytest.raises(NotFoundError):
            await gateway.get_activity(7)

    @pytest.mark.asyncio
    async def test_server_error_is_network_error(self, user_18_raw: dict) -> None:
        gateway = _remote_gateway({"/user/18": user_18_raw}, status=500)
        with pytest.raises(NetworkError):
            await gateway.get_user(18)

    @pytest.mark.asyncio
    async def test_transport_failure_is_network_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        gateway = DataGateway(source=RemoteSource(http_client=client))
        with pytest.raises(NetworkError):
            await gateway.get_user(18)

    @pytest.mark.asyncio
    async def test_non_json_body_is_schema_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>oops</html>")

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        gateway = DataGateway(source=RemoteSource(http_client=client))
        with pytest.raises(SchemaError):
            await gateway.get_user(18)

    @pytest.mark.asyncio
    async def test_get_uses_injected_http_client(self, user_18_raw: dict) -> None:
        mock_response = MagicMock()
        mock_response.status_code = 200
        mock_response.raise_for_status = MagicMock()
        mock_response.json = MagicMock(return_value=user_18_raw)

        mock_client = MagicMock()
        mock_client.get = AsyncMock(return_value=mock_response)

        source = RemoteSource(base_url="http://localhost:3000/", http_client=mock_client)
        result = await source.fetch_user(18)
        assert result == user_18_raw
        mock_client.get.assert_called_once_with("http://localhost:3000/user/18")

    @pytest.mark.asyncio
    async def test_mock_and_remote_agree(
        self,
        fixture_gateway: DataGateway,
        user_18_raw: dict,
        activity_18_raw: dict,
        partial_sessions_raw: dict,
        performance_18_raw: dict,
    ) -> None:
        remote = _remote_gateway(
            {
                "/user/18": json.loads(json.dumps(user_18_raw)),
                "/user/18/activity": activity_18_raw,
                "/user/18/average-sessions": partial_sessions_raw,
                "/user/18/performance": performance_18_raw,
            }
        )
        assert await remote.get_bundle(18) == await fixture_gateway.get_bundle(18)


class TestUnwrapEnvelope:
    def test_unwraps_single_data_key(self) -> None:
        assert unwrap_envelope({"data": {"id": 1}}) == {"id": 1}

    def test_keeps_performance_data_list(self) -> None:
        payload = {"data": [{"value": 1, "kind": 1}]}
        assert unwrap_envelope(payload) is payload

    def test_keeps_bare_payload(self) -> None:
        payload = {"id": 1, "data": {"x": 1}}
        assert unwrap_envelope(payload) is payload
