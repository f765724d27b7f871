"""
Unit tests for the data engine client.

Tests cover:
- Forwarding payloads, endpoints and headers
- Result shaping for list and non-list operations
- Application versus connectivity failures
"""

import json

import httpx
import pytest

from data_engine_gateway.config import EngineSettings
from data_engine_gateway.exceptions import EngineApplicationError, EngineConnectivityError
from data_engine_gateway.models.operation import FailureKind, OperationKind, OperationRequest
from data_engine_gateway.services.engine_client import DataEngineClient, as_list


def make_operation(kind=OperationKind.INSERT, **kwargs):
    values = {
        "kind": kind,
        "project_id": 1,
        "id_instancia": 10,
        "table": "clientes",
        "fields": {"data": {"nome": "Maria"}},
    }
    values.update(kwargs)
    return OperationRequest(**values)


def make_client(handler, token="internal-secret"):
    settings = EngineSettings(
        DATA_ENGINE_URL="http://engine.test/", INTERNAL_TOKEN=token, DATA_ENGINE_TIMEOUT=2
    )
    return DataEngineClient(settings, transport=httpx.MockTransport(handler))


class TestAsList:
    """Tests for list shaping."""

    def test_list_passthrough(self):
        assert as_list([{"id": 1}]) == [{"id": 1}]

    def test_data_envelope_unwrapped(self):
        assert as_list({"data": [{"id": 1}], "success": True}) == [{"id": 1}]

    def test_none_is_empty(self):
        assert as_list(None) == []

    def test_scalar_wrapped(self):
        assert as_list({"id": 1}) == [{"id": 1}]


class TestForward:
    """Tests for forwarding operations."""

    @pytest.mark.asyncio
    async def test_posts_payload_with_headers(self):
        """Payload, endpoint and internal token reach the engine."""
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"success": True, "id": 5})

        client = make_client(handler)
        result = await client.forward(make_operation(idempotency_key="abc"))
        await client.close()

        request = seen[0]
        assert request.method == "POST"
        assert request.url.path == "/data/insert"
        assert request.headers["X-Internal-Token"] == "internal-secret"
        assert request.headers["X-Idempotency-Key"] == "abc"
        assert json.loads(request.content) == {
            "project_id": 1,
            "id_instancia": 10,
            "table": "clientes",
            "data": {"nome": "Maria"},
        }
        assert result.success is True
        assert result.data == {"success": True, "id": 5}

    @pytest.mark.asyncio
    async def test_token_omitted_when_not_configured(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={})

        client = make_client(handler, token=None)
        await client.forward(make_operation())
        await client.close()
        assert "X-Internal-Token" not in seen[0].headers
        assert "X-Idempotency-Key" not in seen[0].headers

    @pytest.mark.asyncio
    async def test_select_result_is_list_with_count(self):
        client = make_client(lambda request: httpx.Response(200, json=[{"id": 1}, {"id": 2}]))
        result = await client.forward(make_operation(OperationKind.SELECT, fields={}))
        await client.close()
        assert result.data == [{"id": 1}, {"id": 2}]
        assert result.count == 2

    @pytest.mark.asyncio
    async def test_select_empty_body_is_empty_list(self):
        client = make_client(lambda request: httpx.Response(200))
        result = await client.forward(make_operation(OperationKind.SELECT, fields={}))
        await client.close()
        assert result.success is True
        assert result.data == []
        assert result.count == 0

    @pytest.mark.asyncio
    async def test_engine_count_reported(self):
        client = make_client(
            lambda request: httpx.Response(200, json={"success": True, "count": 3})
        )
        result = await client.forward(make_operation(OperationKind.DELETE, fields={}))
        await client.close()
        assert result.count == 3

    @pytest.mark.asyncio
    async def test_application_error_message_propagated(self):
        client = make_client(
            lambda request: httpx.Response(400, json={"error": "table not found"})
        )
        result = await client.forward(make_operation())
        await client.close()
        assert result.success is False
        assert result.error == "table not found"
        assert result.failure == FailureKind.APPLICATION

    @pytest.mark.asyncio
    async def test_success_false_is_application_error(self):
        client = make_client(
            lambda request: httpx.Response(200, json={"success": False, "message": "dup key"})
        )
        result = await client.forward(make_operation())
        await client.close()
        assert result.success is False
        assert result.error == "dup key"
        assert result.failure == FailureKind.APPLICATION

    @pytest.mark.asyncio
    @pytest.mark.parametrize("exc_type", [httpx.ConnectError, httpx.ReadTimeout])
    async def test_no_response_is_connectivity_error(self, exc_type):
        """Network details never leak into the result."""

        def handler(request):
            raise exc_type("boom at 10.0.0.5", request=request)

        client = make_client(handler)
        result = await client.forward(make_operation())
        await client.close()
        assert result.success is False
        assert result.error == "could not connect to data engine"
        assert result.failure == FailureKind.CONNECTIVITY


class TestRequest:
    """Tests for raw engine requests."""

    @pytest.mark.asyncio
    async def test_http_error_raises_application_error(self):
        client = make_client(lambda request: httpx.Response(500, text="engine exploded"))
        with pytest.raises(EngineApplicationError) as exc_info:
            await client.request("GET", "/projects")
        await client.close()
        assert exc_info.value.status == 500
        assert exc_info.value.message == "engine exploded"

    @pytest.mark.asyncio
    async def test_connect_error_raises_connectivity_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        client = make_client(handler)
        with pytest.raises(EngineConnectivityError):
            await client.request("GET", "/projects")
        await client.close()

    @pytest.mark.asyncio
    async def test_ping(self):
        client = make_client(lambda request: httpx.Response(200, json={"status": "ok"}))
        assert await client.ping() is True
        await client.close()

    @pytest.mark.asyncio
    async def test_ping_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        client = make_client(handler)
        assert await client.ping() is False
        await client.close()
