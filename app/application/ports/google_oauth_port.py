from __future__ import annotations

from typing import Protocol

from app.application.dto.auth import FederatedIdentity


class GoogleOauthPort(Protocol):
    def authorization_url(self, *, state: str) -> str:
        ...

    def exchange_code(self, *, code: str) -> FederatedIdentity:
        ...
