from __future__ import annotations

import logging

from app.application.dto.auth import AuthSessionOutput, LoginGoogleInput
from app.application.ports.account_port import AccountPort
from app.application.ports.google_oauth_port import GoogleOauthPort
from app.domain.exceptions import FederatedIdentityError

from .auth_common import build_account_output
from .federated_accounts import create_or_get_federated_account
from .session_manager import SessionManager


logger = logging.getLogger(__name__)


class LoginGoogleUseCase:
    def __init__(
        self,
        *,
        account_port: AccountPort,
        google_oauth_port: GoogleOauthPort,
        session_manager: SessionManager,
    ):
        self._account_port = account_port
        self._google_oauth_port = google_oauth_port
        self._session_manager = session_manager

    def execute(self, command: LoginGoogleInput) -> AuthSessionOutput:
        identity = self._google_oauth_port.exchange_code(code=command.code)

        try:
            account = create_or_get_federated_account(account_port=self._account_port, identity=identity)
        except FederatedIdentityError:
            raise
        except Exception as exc:
            logger.exception("login_google: resolve_failed")
            raise FederatedIdentityError("Could not resolve federated identity.") from exc

        session = self._session_manager.issue(account=account, user_agent=command.user_agent, ip=command.ip)
        return AuthSessionOutput(account=build_account_output(account), session=session)
