from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class BadamCountOutput:
    count: int


@dataclass(frozen=True)
class UpdateBadamCountInput:
    account_id: str
    action: str


@dataclass(frozen=True)
class SyncBadamCountInput:
    account_id: str
    count: int
