from __future__ import annotations

import logging
from datetime import datetime
from uuid import uuid4

from app.application.dto.auth import IssuedSession
from app.application.ports.account_port import AccountPort, SessionPort
from app.application.ports.token_port import TokenPort
from app.domain.entities.account import Account

from .auth_common import utcnow


logger = logging.getLogger(__name__)


class SessionManager:
    """Issues, resolves and destroys sessions independently of how the account authenticated.

    The client only ever holds the random token; the store keeps its SHA-256 digest
    bound to exactly one account id with an absolute expiry. Resolution re-reads the
    account on every call, so profile changes show up without signing in again.
    """

    def __init__(self, *, session_port: SessionPort, account_port: AccountPort, token_port: TokenPort):
        self._session_port = session_port
        self._account_port = account_port
        self._token_port = token_port

    def issue(
        self,
        *,
        account: Account,
        user_agent: str | None = None,
        ip: str | None = None,
        now: datetime | None = None,
    ) -> IssuedSession:
        now = now or utcnow()
        purged = self._session_port.purge_expired_sessions(now=now)
        if purged:
            logger.info("session_manager: purged_sessions count=%s", purged)

        token = self._token_port.generate_session_token()
        expires_at = self._token_port.session_expires_at(now=now)
        self._session_port.create_session(
            session_id=str(uuid4()),
            account_id=account.id,
            token_hash=self._token_port.hash_session_token(session_token=token),
            expires_at=expires_at,
            user_agent=user_agent,
            ip=ip,
            created_at=now,
        )
        logger.info("session_manager: issued account_id=%s expires_at=%s", account.id, expires_at.isoformat())
        return IssuedSession(token=token, account_id=account.id, expires_at=expires_at)

    def resolve(self, *, token: str | None, now: datetime | None = None) -> Account | None:
        token = (token or "").strip()
        if not token:
            return None

        session = self._session_port.get_session_by_token_hash(
            token_hash=self._token_port.hash_session_token(session_token=token),
        )
        if session is None or not session.is_active(now=now or utcnow()):
            return None
        return self._account_port.get_account_by_id(account_id=session.account_id)

    def destroy(self, *, token: str | None, now: datetime | None = None) -> bool:
        token = (token or "").strip()
        if not token:
            return False

        session = self._session_port.get_session_by_token_hash(
            token_hash=self._token_port.hash_session_token(session_token=token),
        )
        if session is None or session.revoked_at is not None:
            return False

        self._session_port.revoke_session(session_id=session.id, revoked_at=now or utcnow())
        logger.info("session_manager: destroyed account_id=%s", session.account_id)
        return True
