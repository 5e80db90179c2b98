from __future__ import annotations

import logging
from uuid import uuid4

from app.application.dto.auth import AuthSessionOutput, SignUpInput
from app.application.ports.account_port import AccountPort
from app.application.ports.password_hasher_port import PasswordHasherPort
from app.domain.entities.account import Account
from app.domain.exceptions import DuplicateUsernameError, InvalidInputError

from .auth_common import build_account_output, normalize_email, normalize_username, utcnow
from .session_manager import SessionManager


logger = logging.getLogger(__name__)


class SignUpUseCase:
    def __init__(
        self,
        *,
        account_port: AccountPort,
        password_hasher: PasswordHasherPort,
        session_manager: SessionManager,
    ):
        self._account_port = account_port
        self._password_hasher = password_hasher
        self._session_manager = session_manager

    def execute(self, command: SignUpInput) -> AuthSessionOutput:
        username = normalize_username(command.username)
        password = command.password or ""

        if not username or not password:
            raise InvalidInputError("Username and password are required")

        password_hash = self._password_hasher.hash(password)

        def _tx(account_port: AccountPort) -> Account:
            if account_port.get_account_by_username(username=username) is not None:
                raise DuplicateUsernameError("Username already exists")

            return account_port.create_local_account(
                account_id=str(uuid4()),
                username=username,
                password_hash=password_hash,
                email=normalize_email(command.email),
                created_at=utcnow(),
            )

        account = self._account_port.execute_in_transaction(_tx)
        logger.info("sign_up: account_created account_id=%s", account.id)

        session = self._session_manager.issue(account=account, user_agent=command.user_agent, ip=command.ip)
        return AuthSessionOutput(account=build_account_output(account), session=session)
