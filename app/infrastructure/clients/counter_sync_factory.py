from __future__ import annotations

import httpx

from app.application.use_cases.counter_sync import CounterSyncSession
from app.infrastructure.clients.badam_api_client import BadamApiClient
from app.infrastructure.scheduling.timer_scheduler import ThreadingTimerScheduler
from app.shared.config import Settings, get_settings


def build_counter_sync_session(
    *,
    settings: Settings | None = None,
    transport: httpx.BaseTransport | None = None,
    flush_at_exit: bool = True,
) -> tuple[BadamApiClient, CounterSyncSession]:
    """Wire an API client and a sync session from settings.

    The caller signs in through the returned client, then calls ``session.load()``.
    """
    settings = settings or get_settings()
    api_client = BadamApiClient(base_url=settings.badam_api_base_url, transport=transport)
    session = CounterSyncSession(
        sync_port=api_client,
        scheduler=ThreadingTimerScheduler(),
        debounce_seconds=settings.badam_sync_debounce_seconds,
        retry_seconds=settings.badam_sync_retry_seconds,
    )
    if flush_at_exit:
        session.register_exit_flush()
    return api_client, session
