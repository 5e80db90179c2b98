from __future__ import annotations

import logging

from app.application.dto.badam import BadamCountOutput, UpdateBadamCountInput
from app.application.ports.badam_count_port import BadamCountPort
from app.domain.exceptions import InvalidInputError
from app.domain.services.badam_counter import BADAM_ACTIONS, apply_action

from .auth_common import utcnow


logger = logging.getLogger(__name__)


class UpdateBadamCountUseCase:
    """Legacy per-click mutation.

    Kept for old clients. It reads, applies the action and writes the whole value back
    through the same upsert as the sync path, so both end in last-write-wins.
    """

    def __init__(self, *, badam_count_port: BadamCountPort):
        self._badam_count_port = badam_count_port

    def execute(self, command: UpdateBadamCountInput) -> BadamCountOutput:
        if command.action not in BADAM_ACTIONS:
            raise InvalidInputError('Invalid action. Use "increment" or "decrement"')

        now = utcnow()
        current = self._badam_count_port.get_or_create(account_id=command.account_id, now=now)
        new_count = apply_action(current.count, command.action)
        record = self._badam_count_port.upsert(account_id=command.account_id, count=new_count, now=now)
        logger.debug(
            "update_badam_count: legacy_write account_id=%s action=%s count=%s",
            command.account_id,
            command.action,
            record.count,
        )
        return BadamCountOutput(count=record.count)
