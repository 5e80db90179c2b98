from __future__ import annotations

import hashlib
import secrets
from datetime import datetime, timedelta

import jwt

from app.application.ports.token_port import TokenPort


OAUTH_STATE_TTL_MINUTES = 10


class SessionTokenService(TokenPort):
    def __init__(
        self,
        *,
        session_secret: str,
        session_ttl_hours: int,
    ):
        self._session_secret = session_secret
        self._session_ttl_hours = session_ttl_hours

    def generate_session_token(self) -> str:
        return secrets.token_urlsafe(32)

    def hash_session_token(self, *, session_token: str) -> str:
        return hashlib.sha256(session_token.encode("utf-8")).hexdigest()

    def session_expires_at(self, *, now: datetime) -> datetime:
        return now + timedelta(hours=self._session_ttl_hours)

    def create_oauth_state(self, *, nonce: str, now: datetime) -> str:
        exp = now + timedelta(minutes=OAUTH_STATE_TTL_MINUTES)
        payload = {
            "nonce": nonce,
            "type": "oauth_state",
            "iat": int(now.timestamp()),
            "exp": int(exp.timestamp()),
        }
        return jwt.encode(payload, self._session_secret, algorithm="HS256")

    def read_oauth_state(self, *, state: str) -> str:
        try:
            payload = jwt.decode(state, self._session_secret, algorithms=["HS256"])
        except jwt.PyJWTError as exc:
            raise ValueError("Invalid OAuth state.") from exc

        if payload.get("type") != "oauth_state":
            raise ValueError("Invalid OAuth state type.")

        nonce = payload.get("nonce")
        if not nonce or not isinstance(nonce, str):
            raise ValueError("Invalid OAuth state nonce.")
        return nonce


def generate_oauth_nonce() -> str:
    return secrets.token_urlsafe(16)
