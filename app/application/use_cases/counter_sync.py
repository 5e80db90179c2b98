from __future__ import annotations

import atexit
import logging
from enum import Enum
from functools import partial
from threading import RLock

from app.application.ports.counter_sync_port import CounterSyncPort
from app.application.ports.scheduler_port import DeferredAction, SchedulerPort
from app.domain.exceptions import CounterNotLoadedError
from app.domain.services.badam_counter import apply_action, clamp_count


logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 10.0


class SyncState(str, Enum):
    UNLOADED = "unloaded"
    IDLE = "idle"
    DIRTY = "dirty"


class CounterSyncSession:
    """Optimistic client-side counter with debounced, coalesced persistence.

    Every click updates the local value at once and re-arms a single debounce timer,
    so a burst of clicks inside the window ends in one write of the final value. A
    failed write leaves the session dirty; the next click, an explicit flush or the
    optional retry delay sends it again. Nothing is trusted before ``load``.
    """

    def __init__(
        self,
        *,
        sync_port: CounterSyncPort,
        scheduler: SchedulerPort,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        retry_seconds: float | None = None,
    ):
        self._sync_port = sync_port
        self._scheduler = scheduler
        self._debounce_seconds = debounce_seconds
        self._retry_seconds = retry_seconds
        self._lock = RLock()
        self._state = SyncState.UNLOADED
        self._value: int | None = None
        self._synced_value: int | None = None
        self._pending: DeferredAction | None = None
        self._generation = 0

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def value(self) -> int | None:
        return self._value

    @property
    def synced_value(self) -> int | None:
        return self._synced_value

    @property
    def has_pending_timer(self) -> bool:
        return self._pending is not None

    def load(self) -> int:
        count = clamp_count(self._sync_port.fetch_count())
        with self._lock:
            self._cancel_pending()
            self._generation += 1
            self._value = count
            self._synced_value = count
            self._state = SyncState.IDLE
        return count

    def increment(self) -> int:
        return self._mutate("increment")

    def decrement(self) -> int:
        return self._mutate("decrement")

    def sync_now(self) -> bool:
        with self._lock:
            if self._state is not SyncState.DIRTY:
                return True
            value = self._value
            generation = self._generation

        try:
            self._sync_port.push_count(value)
        except Exception as exc:
            logger.warning("counter_sync: sync_failed count=%s error=%s", value, exc)
            with self._lock:
                if self._retry_seconds is not None and self._state is SyncState.DIRTY and self._pending is None:
                    self._arm(self._retry_seconds)
            return False

        with self._lock:
            self._synced_value = value
            if self._generation == generation:
                self._state = SyncState.IDLE
        logger.debug("counter_sync: synced count=%s", value)
        return True

    def flush(self, *, detached: bool = False) -> bool:
        with self._lock:
            self._cancel_pending()
            if self._state is not SyncState.DIRTY:
                return True
            value = self._value
            generation = self._generation

        if not detached:
            return self.sync_now()

        self._sync_port.push_count_detached(value)
        with self._lock:
            self._synced_value = value
            if self._generation == generation:
                self._state = SyncState.IDLE
        return True

    def sign_out(self) -> None:
        if not self.flush():
            logger.warning("counter_sync: sign_out_flush_failed count=%s", self._value)
        try:
            self._sync_port.sign_out()
        finally:
            with self._lock:
                self._cancel_pending()
                self._generation += 1
                self._value = None
                self._synced_value = None
                self._state = SyncState.UNLOADED

    def close(self) -> None:
        self.flush(detached=True)

    def register_exit_flush(self) -> None:
        # New threads cannot start during interpreter shutdown, so the exit hook is synchronous.
        atexit.register(self.flush)

    def _mutate(self, action: str) -> int:
        with self._lock:
            if self._state is SyncState.UNLOADED or self._value is None:
                raise CounterNotLoadedError("Counter must be loaded before it can change.")
            self._value = apply_action(self._value, action)
            self._generation += 1
            self._state = SyncState.DIRTY
            self._arm(self._debounce_seconds)
            return self._value

    def _arm(self, delay_seconds: float) -> None:
        self._cancel_pending()
        self._pending = self._scheduler.schedule(
            delay_seconds=delay_seconds,
            callback=partial(self._on_timer, self._generation),
        )

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _on_timer(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self._pending = None
        self.sync_now()
