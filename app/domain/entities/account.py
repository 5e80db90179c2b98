from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


FEDERATED_NAME_PLACEHOLDER = "Google User"


@dataclass(frozen=True)
class Account:
    id: str
    username: str | None
    password_hash: str | None
    google_id: str | None
    email: str | None
    display_name: str | None
    avatar_url: str | None
    created_at: datetime
    email_verified: bool = False

    @property
    def has_local_credentials(self) -> bool:
        return bool(self.username) and bool(self.password_hash)

    @property
    def is_federated(self) -> bool:
        return self.google_id is not None

    @property
    def public_name(self) -> str:
        return self.username or self.display_name or self.email or FEDERATED_NAME_PLACEHOLDER


@dataclass(frozen=True)
class AuthSession:
    id: str
    account_id: str
    token_hash: str
    expires_at: datetime
    revoked_at: datetime | None
    user_agent: str | None
    ip: str | None
    created_at: datetime

    def is_active(self, *, now: datetime) -> bool:
        return self.revoked_at is None and self.expires_at > now
