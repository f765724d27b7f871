"""
Integration tests for the data routes.

Tests cover:
- API key enforcement
- Validation failures never reaching the engine
- Forwarded payloads and defaults
- Engine failure mapping
"""

import httpx
import pytest
from fastapi.testclient import TestClient

from data_engine_gateway.main import create_app
from tests.conftest import make_settings

DATA_ROUTES = [
    "/insert",
    "/batch-insert",
    "/get",
    "/join-select",
    "/update",
    "/batch-update",
    "/delete",
    "/aggregate",
]

INSERT_BODY = {
    "project_id": 1,
    "id_instancia": 10,
    "table": "clientes",
    "data": {"nome": "Maria"},
}


class TestAuthentication:
    """Tests for the x-api-key guard."""

    def test_missing_key_rejected(self, client, engine):
        response = client.post("/insert", json=INSERT_BODY)
        assert response.status_code == 401
        assert response.json()["success"] is False
        assert engine.calls == []

    def test_wrong_key_rejected(self, client, engine):
        response = client.post("/insert", json=INSERT_BODY, headers={"x-api-key": "nope"})
        assert response.status_code == 401
        assert engine.calls == []

    def test_empty_allow_list_rejects_everything(self, engine):
        app = create_app(settings=make_settings(api_keys=""), engine_transport=engine.transport)
        with TestClient(app) as test_client:
            response = test_client.post("/get", json=INSERT_BODY, headers={"x-api-key": ""})
            assert response.status_code == 401
            response = test_client.post(
                "/get", json=INSERT_BODY, headers={"x-api-key": "anything"}
            )
            assert response.status_code == 401
        assert engine.calls == []

    def test_any_listed_key_accepted(self, engine):
        app = create_app(
            settings=make_settings(api_keys="first,second"), engine_transport=engine.transport
        )
        with TestClient(app) as test_client:
            response = test_client.post(
                "/insert", json=INSERT_BODY, headers={"x-api-key": "second"}
            )
        assert response.status_code == 200

    def test_health_is_public(self, client, engine):
        engine.reply(200, {"status": "ok"})
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["services"]["data_engine"] == "connected"


class TestValidation:
    """Tests for request validation."""

    @pytest.mark.parametrize("path", DATA_ROUTES)
    @pytest.mark.parametrize(
        "body",
        [
            {},
            [1, 2],
            {"project_id": "abc", "id_instancia": [10], "table": 5},
        ],
        ids=["empty", "not-an-object", "wrong-types"],
    )
    def test_every_route_rejects_bad_body_before_engine(
        self, client, engine, auth_headers, path, body
    ):
        """Invalid bodies give 400 and never reach the engine."""
        response = client.post(path, json=body, headers=auth_headers)
        assert response.status_code == 400
        assert response.json()["success"] is False
        assert engine.calls == []

    def test_missing_fields_return_400_without_engine_call(self, client, engine, auth_headers):
        response = client.post("/insert", json={"table": "clientes"}, headers=auth_headers)
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert "project_id" in body["message"]
        assert "id_instancia" in body["message"]
        assert "data" in body["message"]
        assert engine.calls == []

    def test_sum_without_column(self, client, engine, auth_headers):
        body = {"project_id": 1, "id_instancia": 10, "table": "vendas", "operation": "SUM"}
        response = client.post("/aggregate", json=body, headers=auth_headers)
        assert response.status_code == 400
        assert "column" in response.json()["message"]
        assert engine.calls == []

    def test_malformed_json_is_400(self, client, engine, auth_headers):
        response = client.post(
            "/insert",
            content=b"{not json",
            headers={**auth_headers, "Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert engine.calls == []


class TestForwarding:
    """Tests for successful forwarding."""

    def test_insert(self, client, engine, auth_headers):
        engine.reply(200, {"success": True, "id": 123})
        response = client.post(
            "/insert", json=INSERT_BODY, headers={**auth_headers, "Idempotency-Key": "req-1"}
        )
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "record inserted successfully"
        assert body["data"] == {"success": True, "id": 123}
        assert engine.last.url.path == "/data/insert"
        assert engine.last.headers["X-Internal-Token"] == "internal-secret"
        assert engine.last.headers["X-Idempotency-Key"] == "req-1"
        assert engine.last_json == INSERT_BODY

    def test_routes_also_mounted_under_api(self, client, engine, auth_headers):
        response = client.post("/api/insert", json=INSERT_BODY, headers=auth_headers)
        assert response.status_code == 200
        assert len(engine.calls) == 1

    def test_batch_insert_fills_instance(self, client, engine, auth_headers):
        body = {
            "project_id": 1,
            "id_instancia": 10,
            "table": "produtos",
            "data": [{"nome": "a"}, {"nome": "b", "id_instancia": 99}],
        }
        response = client.post("/batch-insert", json=body, headers=auth_headers)
        assert response.status_code == 200
        rows = engine.last_json["data"]
        assert [row["id_instancia"] for row in rows] == [10, 99]

    def test_select_defaults_and_count(self, client, engine, auth_headers):
        engine.reply(200, [{"id": 1}, {"id": 2}])
        body = {"project_id": "1", "id_instancia": "10", "table": "pedidos"}
        response = client.post("/get", json=body, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["data"] == [{"id": 1}, {"id": 2}]
        assert response.json()["count"] == 2
        forwarded = engine.last_json
        assert forwarded["project_id"] == 1
        assert forwarded["limit"] == 0
        assert forwarded["where"] == {}
        assert forwarded["where_raw"] == ""

    def test_select_is_repeatable(self, client, engine, auth_headers):
        engine.reply(200, [{"id": 1}])
        body = {"project_id": 1, "id_instancia": 10, "table": "pedidos", "limit": 5}
        first = client.post("/get", json=body, headers=auth_headers)
        second = client.post("/get", json=body, headers=auth_headers)
        assert first.json() == second.json()
        assert len(engine.calls) == 2
        assert engine.calls[0].content == engine.calls[1].content

    def test_join_select(self, client, engine, auth_headers):
        engine.reply(200, {"success": True, "data": [{"id": 7}]})
        body = {
            "project_id": 1,
            "id_instancia": 10,
            "base": {"table": "pedidos", "alias": "p"},
            "joins": [{"type": "INNER", "table": "clientes", "alias": "c", "on": "p.c = c.id"}],
        }
        response = client.post("/join-select", json=body, headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["data"] == [{"id": 7}]
        assert engine.last.url.path == "/data/join-select"
        assert "table" not in engine.last_json

    def test_update(self, client, engine, auth_headers):
        body = {
            "project_id": 1,
            "id_instancia": 10,
            "table": "pedidos",
            "data": {"status": "pago"},
            "where": {"id": 5},
        }
        response = client.post("/update", json=body, headers=auth_headers)
        assert response.status_code == 200
        assert engine.last_json["where"] == {"id": 5}

    def test_batch_update(self, client, engine, auth_headers):
        body = {
            "project_id": 1,
            "id_instancia": 10,
            "table": "pedidos",
            "updates": [{"data": {"status": "pago"}, "where": {"id": 5}}],
        }
        response = client.post("/batch-update", json=body, headers=auth_headers)
        assert response.status_code == 200
        assert engine.last.url.path == "/data/batch-update"

    def test_delete_defaults_to_hard(self, client, engine, auth_headers):
        body = {"project_id": 1, "id_instancia": 10, "table": "pedidos", "where": {"id": 5}}
        response = client.post("/delete", json=body, headers=auth_headers)
        assert response.status_code == 200
        assert engine.last_json["mode"] == "hard"

    def test_soft_delete_passthrough(self, client, engine, auth_headers):
        body = {"project_id": 1, "id_instancia": 10, "table": "pedidos", "mode": "soft"}
        client.post("/delete", json=body, headers=auth_headers)
        assert engine.last_json["mode"] == "soft"

    def test_count_without_column(self, client, engine, auth_headers):
        engine.reply(200, {"success": True, "result": 4})
        body = {"project_id": 1, "id_instancia": 10, "table": "vendas", "operation": "COUNT"}
        response = client.post("/aggregate", json=body, headers=auth_headers)
        assert response.status_code == 200
        assert engine.last_json["column"] is None


class TestEngineFailures:
    """Tests for downstream failure mapping."""

    @pytest.mark.parametrize("exc_type", [httpx.ReadTimeout, httpx.ConnectError])
    def test_unreachable_engine(self, client, engine, auth_headers, exc_type):
        engine.fail_with(exc_type)
        response = client.post("/insert", json=INSERT_BODY, headers=auth_headers)
        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert body["message"] == "failed to insert record"
        assert body["error"] == "could not connect to data engine"

    def test_engine_error_message(self, client, engine, auth_headers):
        engine.reply(400, {"error": "Duplicate entry for key email"})
        response = client.post("/insert", json=INSERT_BODY, headers=auth_headers)
        assert response.status_code == 500
        assert response.json()["error"] == "Duplicate entry for key email"

    def test_circuit_opens_after_repeated_outages(self, engine, auth_headers):
        settings = make_settings(DATA_ENGINE_BREAKER_THRESHOLD=2)
        app = create_app(settings=settings, engine_transport=engine.transport)
        engine.fail_with(httpx.ConnectError)
        with TestClient(app) as test_client:
            for _ in range(2):
                response = test_client.post("/insert", json=INSERT_BODY, headers=auth_headers)
                assert response.json()["error"] == "could not connect to data engine"
            response = test_client.post("/insert", json=INSERT_BODY, headers=auth_headers)
        assert response.status_code == 500
        assert response.json()["error"] == "data engine temporarily unavailable"
        assert len(engine.calls) == 2

    def test_health_degraded(self, client, engine):
        engine.fail_with(httpx.ConnectError)
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "degraded"
