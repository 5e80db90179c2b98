from __future__ import annotations

from threading import Timer
from typing import Callable

from app.application.ports.scheduler_port import SchedulerPort


class ThreadingTimerScheduler(SchedulerPort):
    def schedule(self, *, delay_seconds: float, callback: Callable[[], None]) -> Timer:
        timer = Timer(delay_seconds, callback)
        # A pending debounce must not keep the process alive; exit flushes explicitly.
        timer.daemon = True
        timer.start()
        return timer
