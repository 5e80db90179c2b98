from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class UserResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    username: str
    email: str | None = None
    avatar_url: str | None = Field(default=None, alias="avatarUrl")
