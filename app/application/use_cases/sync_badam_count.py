from __future__ import annotations

from app.application.dto.badam import BadamCountOutput, SyncBadamCountInput
from app.application.ports.badam_count_port import BadamCountPort
from app.domain.exceptions import InvalidInputError
from app.domain.services.badam_counter import MAX_BADAM_COUNT

from .auth_common import utcnow


class SyncBadamCountUseCase:
    """Whole-value replacement with the client's running total (last write wins)."""

    def __init__(self, *, badam_count_port: BadamCountPort):
        self._badam_count_port = badam_count_port

    def execute(self, command: SyncBadamCountInput) -> BadamCountOutput:
        count = command.count
        if isinstance(count, bool) or not isinstance(count, int) or not 0 <= count <= MAX_BADAM_COUNT:
            raise InvalidInputError("Invalid count value")

        record = self._badam_count_port.upsert(account_id=command.account_id, count=count, now=utcnow())
        return BadamCountOutput(count=record.count)
