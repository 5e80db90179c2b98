from __future__ import annotations

from datetime import datetime
from typing import Callable, Protocol, TypeVar

from app.domain.entities.account import Account, AuthSession


TAccountResult = TypeVar("TAccountResult")


class AccountPort(Protocol):
    def execute_in_transaction(self, fn: Callable[[AccountPort], TAccountResult]) -> TAccountResult:
        ...

    def get_account_by_id(self, *, account_id: str) -> Account | None:
        ...

    def get_account_by_username(self, *, username: str) -> Account | None:
        ...

    def get_local_account_by_username(self, *, username: str) -> Account | None:
        ...

    def get_account_by_google_id(self, *, google_id: str) -> Account | None:
        ...

    def get_account_by_verified_email(self, *, email: str) -> Account | None:
        ...

    def create_local_account(
        self,
        *,
        account_id: str,
        username: str,
        password_hash: str,
        email: str | None,
        created_at: datetime,
        email_verified: bool = False,
    ) -> Account:
        ...

    def create_federated_account(
        self,
        *,
        account_id: str,
        google_id: str,
        email: str | None,
        display_name: str,
        avatar_url: str | None,
        created_at: datetime,
    ) -> Account:
        ...

    def link_google_identity(
        self,
        *,
        account_id: str,
        google_id: str,
        avatar_url: str | None,
    ) -> Account | None:
        ...

    def update_password_hash(self, *, account_id: str, password_hash: str) -> None:
        ...


class SessionPort(Protocol):
    def create_session(
        self,
        *,
        session_id: str,
        account_id: str,
        token_hash: str,
        expires_at: datetime,
        user_agent: str | None,
        ip: str | None,
        created_at: datetime,
    ) -> AuthSession:
        ...

    def get_session_by_token_hash(self, *, token_hash: str) -> AuthSession | None:
        ...

    def revoke_session(self, *, session_id: str, revoked_at: datetime) -> None:
        ...

    def purge_expired_sessions(self, *, now: datetime) -> int:
        ...
