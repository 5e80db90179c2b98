from __future__ import annotations

from app.application.dto.badam import BadamCountOutput
from app.application.ports.badam_count_port import BadamCountPort

from .auth_common import utcnow


class GetBadamCountUseCase:
    def __init__(self, *, badam_count_port: BadamCountPort):
        self._badam_count_port = badam_count_port

    def execute(self, *, account_id: str) -> BadamCountOutput:
        record = self._badam_count_port.get_or_create(account_id=account_id, now=utcnow())
        return BadamCountOutput(count=record.count)
