from __future__ import annotations

from app.application.dto.auth import AccountOutput
from app.domain.entities.account import Account

from .auth_common import build_account_output


class GetCurrentUserUseCase:
    def execute(self, *, account: Account) -> AccountOutput:
        return build_account_output(account)
