from __future__ import annotations

from pydantic import BaseModel, StrictInt


class BadamCountResponse(BaseModel):
    count: int


class BadamActionRequest(BaseModel):
    action: str = ""


class BadamSyncRequest(BaseModel):
    count: StrictInt


class BadamSyncResponse(BaseModel):
    count: int
    message: str = "Count synced successfully"
