from __future__ import annotations

import json
import threading

import httpx
import pytest

from app.application.use_cases.counter_sync import CounterSyncSession, SyncState
from app.domain.exceptions import (
    DuplicateUsernameError,
    InvalidCredentialsError,
    InvalidInputError,
    UnauthenticatedError,
)
from app.infrastructure.clients.badam_api_client import BadamApiClient
from app.infrastructure.clients.counter_sync_factory import build_counter_sync_session


class FakeBadamServer:
    """Minimal stand-in for the HTTP API, keyed on the session cookie."""

    def __init__(self):
        self.count = 4
        self.requests: list[tuple[str, str, dict | None]] = []
        self.synced = threading.Event()

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        self.requests.append((request.method, request.url.path, body))
        authenticated = "badam_session=tok-1" in request.headers.get("cookie", "")

        if request.url.path == "/api/signin":
            if body == {"username": "alice", "password": "pw1"}:
                return httpx.Response(
                    200,
                    json={"message": "Sign in successful", "username": "alice"},
                    headers={"set-cookie": "badam_session=tok-1; Path=/; HttpOnly"},
                )
            return httpx.Response(401, json={"detail": "Invalid username or password"})
        if request.url.path == "/api/signup":
            if body["username"] == "alice":
                return httpx.Response(400, json={"detail": "Username already exists"})
            if not body["password"]:
                return httpx.Response(400, json={"detail": "Username and password are required"})
            return httpx.Response(200, json={"message": "User created successfully", "username": body["username"]})
        if not authenticated:
            return httpx.Response(401, json={"detail": "Not authenticated"})
        if request.url.path == "/api/user":
            return httpx.Response(200, json={"username": "alice", "email": None, "avatarUrl": None})
        if request.url.path == "/api/badam":
            return httpx.Response(200, json={"count": self.count})
        if request.url.path == "/api/badam/sync":
            if not isinstance(body.get("count"), int) or body["count"] < 0:
                return httpx.Response(400, json={"detail": "Invalid count value"})
            self.count = body["count"]
            self.synced.set()
            return httpx.Response(200, json={"count": self.count, "message": "Count synced successfully"})
        if request.url.path == "/api/signout":
            return httpx.Response(200, json={"message": "Signed out successfully"})
        return httpx.Response(404, json={"detail": "Not Found"})


@pytest.fixture()
def server():
    return FakeBadamServer()


@pytest.fixture()
def api(server):
    client = BadamApiClient(base_url="http://badam.test/", transport=httpx.MockTransport(server.handler))
    yield client
    client.close()


def test_sign_in_keeps_session_cookie_for_later_calls(api, server):
    assert api.sign_in(username="alice", password="pw1") == "alice"

    assert api.current_user()["username"] == "alice"
    assert api.fetch_count() == 4
    assert api.push_count(9) == 9
    assert server.count == 9
    assert server.requests[-1] == ("POST", "/api/badam/sync", {"count": 9})


def test_sign_in_failure_raises_invalid_credentials(api):
    with pytest.raises(InvalidCredentialsError, match="Invalid username or password"):
        api.sign_in(username="alice", password="nope")


def test_sign_up_maps_errors(api):
    with pytest.raises(DuplicateUsernameError):
        api.sign_up(username="alice", password="pw1")
    with pytest.raises(InvalidInputError):
        api.sign_up(username="bob", password="")

    assert api.sign_up(username="bob", password="pw2") == "bob"


def test_calls_without_session_raise_unauthenticated(api):
    with pytest.raises(UnauthenticatedError):
        api.fetch_count()


def test_rejected_count_raises_invalid_input(api):
    api.sign_in(username="alice", password="pw1")

    with pytest.raises(InvalidInputError, match="Invalid count value"):
        api.push_count(-1)


def test_detached_push_delivers_with_copied_session(api, server):
    api.sign_in(username="alice", password="pw1")

    api.push_count_detached(12)

    assert server.synced.wait(timeout=2)
    assert server.count == 12


def test_sign_out_clears_cookies(api, server):
    api.sign_in(username="alice", password="pw1")

    api.sign_out()

    assert ("POST", "/api/signout", None) in server.requests
    with pytest.raises(UnauthenticatedError):
        api.fetch_count()


def test_counter_session_over_http_flushes_on_sign_out(api, server):
    class NeverFires:
        def schedule(self, *, delay_seconds, callback):
            return threading.Timer(delay_seconds, callback)

    api.sign_in(username="alice", password="pw1")
    session = CounterSyncSession(sync_port=api, scheduler=NeverFires())
    session.load()
    session.increment()
    session.increment()
    session.increment()

    session.sign_out()

    assert server.count == 7
    assert [path for method, path, _ in server.requests if path == "/api/badam/sync"] == ["/api/badam/sync"]
    assert session.state is SyncState.UNLOADED


def test_factory_wires_client_and_session_from_settings(server, monkeypatch):
    monkeypatch.setenv("BADAM_API_BASE_URL", "http://badam.test")
    monkeypatch.setenv("BADAM_SYNC_DEBOUNCE_SECONDS", "0.01")
    monkeypatch.delenv("BADAM_SYNC_RETRY_SECONDS", raising=False)

    api, session = build_counter_sync_session(transport=httpx.MockTransport(server.handler), flush_at_exit=False)
    try:
        api.sign_in(username="alice", password="pw1")
        assert session.load() == 4

        session.increment()

        assert server.synced.wait(timeout=2)
        assert server.count == 5
    finally:
        api.close()
