from __future__ import annotations

from fastapi import APIRouter, Depends

from app.api.deps import get_get_leaderboard_use_case
from app.api.schemas.leaderboard import LeaderboardResponse, LeaderboardRowResponse
from app.application.use_cases.get_leaderboard import GetLeaderboardUseCase


router = APIRouter()


@router.get("/api/leaderboard", response_model=LeaderboardResponse)
def get_leaderboard(
    limit: int | None = None,
    use_case: GetLeaderboardUseCase = Depends(get_get_leaderboard_use_case),
):
    output = use_case.execute(limit=limit)
    return LeaderboardResponse(
        leaderboard=[
            LeaderboardRowResponse(
                username=row.username,
                count=row.count,
                created_at=row.created_at,
                avatar_url=row.avatar_url,
            )
            for row in output.rows
        ]
    )
