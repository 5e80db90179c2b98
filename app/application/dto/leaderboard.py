from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class LeaderboardRowOutput:
    username: str
    count: int
    created_at: datetime
    avatar_url: str | None


@dataclass(frozen=True)
class LeaderboardOutput:
    rows: list[LeaderboardRowOutput]
