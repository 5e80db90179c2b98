from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import Callable, TypeVar

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from app.application.ports.account_port import AccountPort, SessionPort
from app.domain.exceptions import DuplicateUsernameError, FederatedIdentityConflictError
from app.infrastructure.db.mappers.accounts_mapper import map_row_to_account, map_row_to_auth_session


T = TypeVar("T")

ACCOUNT_COLUMNS = (
    "id, username, password_hash, google_id, email, email_verified, display_name, avatar_url, created_at"
)
SESSION_COLUMNS = "id, account_id, token_hash, expires_at, revoked_at, user_agent, ip, created_at"

INSERT_ZERO_COUNT_SQL = """
    INSERT INTO badam_counts (account_id, count, updated_at)
    VALUES (:account_id, 0, :updated_at)
    ON CONFLICT (account_id) DO NOTHING
"""


class SqlAccountsRepository(AccountPort, SessionPort):
    def __init__(self, engine, *, connection=None):
        self._engine = engine
        self._connection = connection

    def execute_in_transaction(self, fn: Callable[[AccountPort], T]) -> T:
        if self._connection is not None:
            return fn(self)
        with self._engine.begin() as conn:
            return fn(SqlAccountsRepository(self._engine, connection=conn))

    @contextmanager
    def _connect(self):
        if self._connection is not None:
            yield self._connection
            return
        with self._engine.connect() as conn:
            yield conn

    @contextmanager
    def _begin(self):
        if self._connection is not None:
            yield self._connection
            return
        with self._engine.begin() as conn:
            yield conn

    def _fetch_account(self, sql: str, params: dict):
        with self._connect() as conn:
            row = conn.execute(text(sql), params).mappings().first()
        if row is None:
            return None
        return map_row_to_account(row)

    def get_account_by_id(self, *, account_id: str):
        sql = f"""
            SELECT {ACCOUNT_COLUMNS}
            FROM accounts
            WHERE id = :account_id
            LIMIT 1
        """
        return self._fetch_account(sql, {"account_id": account_id})

    def get_account_by_username(self, *, username: str):
        sql = f"""
            SELECT {ACCOUNT_COLUMNS}
            FROM accounts
            WHERE username = :username
            LIMIT 1
        """
        return self._fetch_account(sql, {"username": username})

    def get_local_account_by_username(self, *, username: str):
        sql = f"""
            SELECT {ACCOUNT_COLUMNS}
            FROM accounts
            WHERE username = :username
              AND password_hash IS NOT NULL
            LIMIT 1
        """
        return self._fetch_account(sql, {"username": username})

    def get_account_by_google_id(self, *, google_id: str):
        sql = f"""
            SELECT {ACCOUNT_COLUMNS}
            FROM accounts
            WHERE google_id = :google_id
            LIMIT 1
        """
        return self._fetch_account(sql, {"google_id": google_id})

    def get_account_by_verified_email(self, *, email: str):
        sql = f"""
            SELECT {ACCOUNT_COLUMNS}
            FROM accounts
            WHERE lower(email) = :email
              AND email_verified = :email_verified
            ORDER BY created_at ASC
            LIMIT 1
        """
        return self._fetch_account(sql, {"email": email.lower(), "email_verified": True})

    def create_local_account(
        self,
        *,
        account_id: str,
        username: str,
        password_hash: str,
        email: str | None,
        created_at: datetime,
        email_verified: bool = False,
    ):
        sql = f"""
            INSERT INTO accounts (id, username, password_hash, email, email_verified, created_at)
            VALUES (:id, :username, :password_hash, :email, :email_verified, :created_at)
            RETURNING {ACCOUNT_COLUMNS}
        """
        params = {
            "id": account_id,
            "username": username,
            "password_hash": password_hash,
            "email": email,
            "email_verified": bool(email) and email_verified,
            "created_at": created_at,
        }
        try:
            with self._begin() as conn:
                row = conn.execute(text(sql), params).mappings().one()
                conn.execute(text(INSERT_ZERO_COUNT_SQL), {"account_id": account_id, "updated_at": created_at})
        except IntegrityError as exc:
            raise DuplicateUsernameError("Username already exists") from exc
        return map_row_to_account(row)

    def create_federated_account(
        self,
        *,
        account_id: str,
        google_id: str,
        email: str | None,
        display_name: str,
        avatar_url: str | None,
        created_at: datetime,
    ):
        sql = f"""
            INSERT INTO accounts (id, google_id, email, email_verified, display_name, avatar_url, created_at)
            VALUES (:id, :google_id, :email, :email_verified, :display_name, :avatar_url, :created_at)
            RETURNING {ACCOUNT_COLUMNS}
        """
        params = {
            "id": account_id,
            "google_id": google_id,
            "email": email,
            "email_verified": email is not None,
            "display_name": display_name,
            "avatar_url": avatar_url,
            "created_at": created_at,
        }
        try:
            with self._begin() as conn:
                row = conn.execute(text(sql), params).mappings().one()
                conn.execute(text(INSERT_ZERO_COUNT_SQL), {"account_id": account_id, "updated_at": created_at})
        except IntegrityError as exc:
            raise FederatedIdentityConflictError("Federated identity is already registered.") from exc
        return map_row_to_account(row)

    def link_google_identity(
        self,
        *,
        account_id: str,
        google_id: str,
        avatar_url: str | None,
    ):
        # The IS NULL guard refuses to overwrite an existing link; the unique index on
        # google_id refuses to attach one identity to two accounts.
        sql = f"""
            UPDATE accounts
            SET google_id = :google_id,
                avatar_url = COALESCE(:avatar_url, avatar_url)
            WHERE id = :account_id
              AND google_id IS NULL
            RETURNING {ACCOUNT_COLUMNS}
        """
        params = {"account_id": account_id, "google_id": google_id, "avatar_url": avatar_url}
        try:
            with self._begin() as conn:
                row = conn.execute(text(sql), params).mappings().first()
        except IntegrityError as exc:
            raise FederatedIdentityConflictError("Federated identity is already linked to another account.") from exc
        if row is None:
            return None
        return map_row_to_account(row)

    def update_password_hash(self, *, account_id: str, password_hash: str) -> None:
        sql = """
            UPDATE accounts
            SET password_hash = :password_hash
            WHERE id = :account_id
              AND password_hash IS NOT NULL
        """
        with self._begin() as conn:
            conn.execute(text(sql), {"account_id": account_id, "password_hash": password_hash})

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
    ):
        sql = f"""
            INSERT INTO auth_sessions (
                id, account_id, token_hash, expires_at, revoked_at, user_agent, ip, created_at
            ) VALUES (
                :id, :account_id, :token_hash, :expires_at, NULL, :user_agent, :ip, :created_at
            )
            RETURNING {SESSION_COLUMNS}
        """
        params = {
            "id": session_id,
            "account_id": account_id,
            "token_hash": token_hash,
            "expires_at": expires_at,
            "user_agent": user_agent,
            "ip": ip,
            "created_at": created_at,
        }
        with self._begin() as conn:
            row = conn.execute(text(sql), params).mappings().one()
        return map_row_to_auth_session(row)

    def get_session_by_token_hash(self, *, token_hash: str):
        sql = f"""
            SELECT {SESSION_COLUMNS}
            FROM auth_sessions
            WHERE token_hash = :token_hash
            LIMIT 1
        """
        with self._connect() as conn:
            row = conn.execute(text(sql), {"token_hash": token_hash}).mappings().first()
        if row is None:
            return None
        return map_row_to_auth_session(row)

    def revoke_session(self, *, session_id: str, revoked_at: datetime) -> None:
        sql = """
            UPDATE auth_sessions
            SET revoked_at = :revoked_at
            WHERE id = :session_id
              AND revoked_at IS NULL
        """
        with self._begin() as conn:
            conn.execute(text(sql), {"session_id": session_id, "revoked_at": revoked_at})

    def purge_expired_sessions(self, *, now: datetime) -> int:
        sql = """
            DELETE FROM auth_sessions
            WHERE expires_at <= :now
               OR revoked_at IS NOT NULL
        """
        with self._begin() as conn:
            result = conn.execute(text(sql), {"now": now})
        return result.rowcount
