from __future__ import annotations

from typing import Callable, Protocol


class DeferredAction(Protocol):
    def cancel(self) -> None:
        ...


class SchedulerPort(Protocol):
    def schedule(self, *, delay_seconds: float, callback: Callable[[], None]) -> DeferredAction:
        ...
