from __future__ import annotations

from app.application.dto.leaderboard import LeaderboardOutput, LeaderboardRowOutput
from app.application.ports.badam_count_port import LeaderboardPort


class GetLeaderboardUseCase:
    def __init__(self, *, leaderboard_port: LeaderboardPort, default_limit: int = 10, max_limit: int = 100):
        self._leaderboard_port = leaderboard_port
        self._default_limit = default_limit
        self._max_limit = max_limit

    def execute(self, *, limit: int | None = None) -> LeaderboardOutput:
        if limit is None or limit <= 0:
            limit = self._default_limit
        limit = min(limit, self._max_limit)

        entries = self._leaderboard_port.list_top(limit=limit)
        return LeaderboardOutput(
            rows=[
                LeaderboardRowOutput(
                    username=entry.name,
                    count=entry.count,
                    created_at=entry.created_at,
                    avatar_url=entry.avatar_url,
                )
                for entry in entries
            ]
        )
