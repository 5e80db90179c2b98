from __future__ import annotations

import logging
from urllib.parse import urlencode

import httpx
from google.auth.transport import requests
from google.oauth2 import id_token

from app.application.dto.auth import FederatedIdentity
from app.application.ports.google_oauth_port import GoogleOauthPort
from app.domain.exceptions import FederatedIdentityError


logger = logging.getLogger(__name__)

GOOGLE_AUTHORIZATION_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_SCOPES = ("openid", "email", "profile")


class GoogleOauthClient(GoogleOauthPort):
    def __init__(
        self,
        *,
        client_id: str,
        client_secret: str,
        callback_url: str,
        timeout_seconds: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self._client_id = client_id
        self._client_secret = client_secret
        self._callback_url = callback_url
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    def authorization_url(self, *, state: str) -> str:
        params = {
            "client_id": self._client_id,
            "redirect_uri": self._callback_url,
            "response_type": "code",
            "scope": " ".join(GOOGLE_SCOPES),
            "state": state,
            "access_type": "online",
            "prompt": "select_account",
        }
        return f"{GOOGLE_AUTHORIZATION_URL}?{urlencode(params)}"

    def exchange_code(self, *, code: str) -> FederatedIdentity:
        if not code:
            raise FederatedIdentityError("Missing authorization code.")

        try:
            with httpx.Client(timeout=self._timeout_seconds, transport=self._transport) as client:
                response = client.post(
                    GOOGLE_TOKEN_URL,
                    data={
                        "code": code,
                        "client_id": self._client_id,
                        "client_secret": self._client_secret,
                        "redirect_uri": self._callback_url,
                        "grant_type": "authorization_code",
                    },
                )
                response.raise_for_status()
                payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("google_oauth_client: token_exchange_failed error=%s", exc)
            raise FederatedIdentityError("Google token exchange failed.") from exc

        raw_id_token = payload.get("id_token")
        if not raw_id_token:
            raise FederatedIdentityError("Google token response has no id_token.")

        try:
            claims = id_token_verify(token=raw_id_token, audience=self._client_id)
        except Exception as exc:
            raise FederatedIdentityError("Invalid Google id_token.") from exc

        return map_claims_to_identity(claims)


def map_claims_to_identity(claims: dict) -> FederatedIdentity:
    subject = claims.get("sub")
    if not subject:
        raise FederatedIdentityError("Google id_token missing required claims.")

    email_verified_raw = claims.get("email_verified", False)
    email_verified = bool(email_verified_raw)
    if isinstance(email_verified_raw, str):
        email_verified = email_verified_raw.lower() == "true"

    # Unverified emails must not drive account linking.
    email = claims.get("email") if email_verified and isinstance(claims.get("email"), str) else None
    name = claims.get("name") if isinstance(claims.get("name"), str) else None
    picture = claims.get("picture") if isinstance(claims.get("picture"), str) else None
    return FederatedIdentity(
        subject=str(subject),
        email=email,
        name=name,
        picture=picture,
    )


def id_token_verify(*, token: str, audience: str) -> dict:
    request = requests.Request()
    return id_token.verify_oauth2_token(token, request, audience)
