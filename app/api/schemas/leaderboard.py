from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class LeaderboardRowResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    username: str
    count: int
    created_at: datetime = Field(alias="createdAt")
    avatar_url: str | None = Field(default=None, alias="avatarUrl")


class LeaderboardResponse(BaseModel):
    leaderboard: list[LeaderboardRowResponse]
