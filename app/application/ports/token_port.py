from __future__ import annotations

from datetime import datetime
from typing import Protocol


class TokenPort(Protocol):
    def generate_session_token(self) -> str:
        ...

    def hash_session_token(self, *, session_token: str) -> str:
        ...

    def session_expires_at(self, *, now: datetime) -> datetime:
        ...

    def create_oauth_state(self, *, nonce: str, now: datetime) -> str:
        ...

    def read_oauth_state(self, *, state: str) -> str:
        ...
