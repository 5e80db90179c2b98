from __future__ import annotations

from typing import Protocol


class CounterSyncPort(Protocol):
    def fetch_count(self) -> int:
        ...

    def push_count(self, count: int) -> int:
        ...

    def push_count_detached(self, count: int) -> None:
        ...

    def sign_out(self) -> None:
        ...
