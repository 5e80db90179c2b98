from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class BadamCount:
    account_id: str
    count: int
    updated_at: datetime


@dataclass(frozen=True)
class LeaderboardEntry:
    account_id: str
    name: str
    count: int
    created_at: datetime
    avatar_url: str | None
