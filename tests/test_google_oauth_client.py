from __future__ import annotations

from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from app.domain.exceptions import FederatedIdentityError
from app.infrastructure.clients import google_oauth_client
from app.infrastructure.clients.google_oauth_client import (
    GOOGLE_TOKEN_URL,
    GoogleOauthClient,
    map_claims_to_identity,
)


def _client(handler) -> GoogleOauthClient:
    return GoogleOauthClient(
        client_id="client-1",
        client_secret="secret-1",
        callback_url="http://localhost:3000/api/auth/google/callback",
        transport=httpx.MockTransport(handler),
    )


def test_authorization_url_carries_state_and_scopes():
    client = _client(lambda request: httpx.Response(500))

    url = urlparse(client.authorization_url(state="state-1"))
    query = parse_qs(url.query)

    assert url.netloc == "accounts.google.com"
    assert query["state"] == ["state-1"]
    assert query["client_id"] == ["client-1"]
    assert query["scope"] == ["openid email profile"]
    assert query["redirect_uri"] == ["http://localhost:3000/api/auth/google/callback"]


def test_exchange_code_verifies_id_token(monkeypatch):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["form"] = parse_qs(request.content.decode())
        return httpx.Response(200, json={"id_token": "raw-id-token", "access_token": "at"})

    def fake_verify(*, token: str, audience: str) -> dict:
        assert token == "raw-id-token"
        assert audience == "client-1"
        return {
            "sub": "google-sub-1",
            "email": "jane@example.com",
            "email_verified": True,
            "name": "Jane",
            "picture": "https://example.com/j.png",
        }

    monkeypatch.setattr(google_oauth_client, "id_token_verify", fake_verify)

    identity = _client(handler).exchange_code(code="code-1")

    assert seen["url"] == GOOGLE_TOKEN_URL
    assert seen["form"]["code"] == ["code-1"]
    assert seen["form"]["grant_type"] == ["authorization_code"]
    assert identity.subject == "google-sub-1"
    assert identity.email == "jane@example.com"
    assert identity.picture == "https://example.com/j.png"


def test_exchange_code_wraps_token_endpoint_errors():
    client = _client(lambda request: httpx.Response(400, json={"error": "invalid_grant"}))

    with pytest.raises(FederatedIdentityError):
        client.exchange_code(code="code-1")


def test_exchange_code_requires_id_token():
    client = _client(lambda request: httpx.Response(200, json={"access_token": "at"}))

    with pytest.raises(FederatedIdentityError):
        client.exchange_code(code="code-1")


def test_exchange_code_wraps_verification_errors(monkeypatch):
    def fake_verify(*, token: str, audience: str) -> dict:
        raise ValueError("Token expired")

    monkeypatch.setattr(google_oauth_client, "id_token_verify", fake_verify)
    client = _client(lambda request: httpx.Response(200, json={"id_token": "raw"}))

    with pytest.raises(FederatedIdentityError):
        client.exchange_code(code="code-1")


@pytest.mark.parametrize("verified", [False, "false", None])
def test_unverified_email_is_dropped(verified):
    claims = {"sub": "s-1", "email": "jane@example.com", "name": "Jane"}
    if verified is not None:
        claims["email_verified"] = verified

    identity = map_claims_to_identity(claims)

    assert identity.email is None
    assert identity.name == "Jane"


def test_string_true_email_verified_is_accepted():
    identity = map_claims_to_identity({"sub": "s-1", "email": "jane@example.com", "email_verified": "true"})

    assert identity.email == "jane@example.com"


def test_missing_subject_is_rejected():
    with pytest.raises(FederatedIdentityError):
        map_claims_to_identity({"email": "jane@example.com", "email_verified": True})
