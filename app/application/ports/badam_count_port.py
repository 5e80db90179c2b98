from __future__ import annotations

from datetime import datetime
from typing import Protocol

from app.domain.entities.badam import BadamCount, LeaderboardEntry


class BadamCountPort(Protocol):
    def get_or_create(self, *, account_id: str, now: datetime) -> BadamCount:
        ...

    def upsert(self, *, account_id: str, count: int, now: datetime) -> BadamCount:
        ...


class LeaderboardPort(Protocol):
    def list_top(self, *, limit: int) -> list[LeaderboardEntry]:
        ...
