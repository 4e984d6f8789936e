"""Shared test configuration."""

from __future__ import annotations

import json
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from rundown_api.app import create_app
from rundown_api.core import Settings, create_db_engine, init_db
from rundown_api.services import StravaClient

VERIFY_TOKEN = "test-verify-token"


class FakeStrava:
    """Routes requests to canned responses keyed by (method, path)."""

    def __init__(self) -> None:
        self.routes: Dict[Tuple[str, str], Callable[[httpx.Request], httpx.Response]] = {}
        self.requests: List[httpx.Request] = []

    def add(self, method: str, path: str, status_code: int = 200, json_body: Any = None, text: Optional[str] = None) -> None:
        def responder(request: httpx.Request) -> httpx.Response:
            if json_body is not None:
                return httpx.Response(status_code, json=json_body)
            return httpx.Response(status_code, text=text or "")

        self.routes[(method, path)] = responder

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        responder = self.routes.get((request.method, request.url.path))
        if responder is None:
            return httpx.Response(404, json={"message": "Record Not Found"})
        return responder(request)

    def last_json(self) -> Any:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        database_url="sqlite://",
        strava_client_id="12345",
        strava_client_secret="client-secret",
        strava_verify_token=VERIFY_TOKEN,
        strava_webhook_callback_url="https://example.test/api/webhooks/strava",
        log_level="DEBUG",
    )


@pytest.fixture
def engine(tmp_path):
    # A file database so the webhook worker thread gets its own connection.
    engine = create_db_engine(f"sqlite:///{tmp_path / 'test.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def fake_strava() -> FakeStrava:
    return FakeStrava()


@pytest.fixture
def strava_client(settings, fake_strava) -> StravaClient:
    return StravaClient(settings, transport=httpx.MockTransport(fake_strava.handler))


@pytest.fixture
def app(settings, engine, strava_client):
    return create_app(settings, engine=engine, strava_client=strava_client)


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client
