from __future__ import annotations

import logging

from app.application.dto.auth import AuthSessionOutput, SignInInput
from app.application.ports.account_port import AccountPort
from app.application.ports.password_hasher_port import PasswordHasherPort
from app.domain.exceptions import InvalidCredentialsError, InvalidInputError

from .auth_common import build_account_output, normalize_username
from .session_manager import SessionManager


logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid username or password"


class SignInUseCase:
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

    def execute(self, command: SignInInput) -> AuthSessionOutput:
        username = normalize_username(command.username)
        if not username or not command.password:
            raise InvalidInputError("Username and password are required")

        # Federated-only accounts have no password hash and are never reachable here.
        account = self._account_port.get_local_account_by_username(username=username)
        if account is None or not account.has_local_credentials:
            logger.info("sign_in: rejected")
            raise InvalidCredentialsError(INVALID_CREDENTIALS_MESSAGE)

        verified, replacement_hash = self._password_hasher.verify_and_update(command.password, account.password_hash)
        if not verified:
            logger.info("sign_in: rejected")
            raise InvalidCredentialsError(INVALID_CREDENTIALS_MESSAGE)

        if replacement_hash:
            self._account_port.update_password_hash(account_id=account.id, password_hash=replacement_hash)
            logger.info("sign_in: password_rehashed account_id=%s", account.id)

        session = self._session_manager.issue(account=account, user_agent=command.user_agent, ip=command.ip)
        return AuthSessionOutput(account=build_account_output(account), session=session)
