"""
Shared fixtures.

The data engine is replaced by an httpx.MockTransport that records every
forwarded request, so tests can assert both on the gateway response and on
what (if anything) reached the engine.
"""

import json
from typing import Any, Callable, List

import httpx
import pytest
from fastapi.testclient import TestClient

from data_engine_gateway.config import (
    AppSettings,
    AuthSettings,
    EngineSettings,
    LogSettings,
    Settings,
)
from data_engine_gateway.main import create_app

API_KEY = "test-key"
ENGINE_URL = "http://engine.test"
INTERNAL_TOKEN = "internal-secret"


class EngineStub:
    """Records requests and answers them with a configurable responder."""

    def __init__(self):
        self.calls: List[httpx.Request] = []
        self.responder: Callable[[httpx.Request], httpx.Response] = (
            lambda request: httpx.Response(200, json={"success": True})
        )

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        return self.responder(request)

    def reply(self, status_code: int = 200, body: Any = None) -> None:
        """Answer every following request with the given status and JSON body."""
        self.responder = lambda request: httpx.Response(status_code, json=body)

    def fail_with(self, exc_type) -> None:
        """Simulate a request that never gets a response."""

        def responder(request):
            raise exc_type("simulated failure", request=request)

        self.responder = responder

    @property
    def last(self) -> httpx.Request:
        return self.calls[-1]

    @property
    def last_json(self) -> Any:
        return json.loads(self.last.content)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def make_settings(api_keys: str = API_KEY, **engine) -> Settings:
    engine_values = {
        "DATA_ENGINE_URL": ENGINE_URL,
        "INTERNAL_TOKEN": INTERNAL_TOKEN,
        "DATA_ENGINE_TIMEOUT": 5,
    }
    engine_values.update(engine)
    return Settings(
        app=AppSettings(APP_ENV="development"),
        engine=EngineSettings(**engine_values),
        auth=AuthSettings(API_KEYS=api_keys),
        log=LogSettings(LOG_LEVEL="WARNING", LOG_FORMAT="text"),
    )


@pytest.fixture
def engine():
    """Recording stand-in for the data engine."""
    return EngineStub()


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def client(settings, engine):
    """Gateway test client wired to the engine stub."""
    app = create_app(settings=settings, engine_transport=engine.transport)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers():
    return {"x-api-key": API_KEY}
