from __future__ import annotations

import logging
from threading import Thread

import httpx

from app.application.ports.counter_sync_port import CounterSyncPort
from app.domain.exceptions import (
    DuplicateUsernameError,
    InvalidCredentialsError,
    InvalidInputError,
    UnauthenticatedError,
)


logger = logging.getLogger(__name__)


class BadamApiClient(CounterSyncPort):
    """HTTP client for the badam API that keeps the session cookie between calls."""

    def __init__(
        self,
        *,
        base_url: str,
        timeout_seconds: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds
        self._transport = transport
        self._client = httpx.Client(base_url=self._base_url, timeout=timeout_seconds, transport=transport)

    def __enter__(self) -> BadamApiClient:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def sign_up(self, *, username: str, password: str, email: str | None = None) -> str:
        payload = {"username": username, "password": password}
        if email:
            payload["email"] = email
        response = self._client.post("/api/signup", json=payload)
        if response.status_code == 400:
            detail = _detail(response)
            if detail == "Username already exists":
                raise DuplicateUsernameError(detail)
            raise InvalidInputError(detail)
        response.raise_for_status()
        return response.json()["username"]

    def sign_in(self, *, username: str, password: str) -> str:
        response = self._client.post("/api/signin", json={"username": username, "password": password})
        if response.status_code == 401:
            raise InvalidCredentialsError(_detail(response))
        if response.status_code == 400:
            raise InvalidInputError(_detail(response))
        response.raise_for_status()
        return response.json()["username"]

    def current_user(self) -> dict:
        response = self._client.get("/api/user")
        return self._json(response)

    def fetch_count(self) -> int:
        response = self._client.get("/api/badam")
        return int(self._json(response)["count"])

    def push_count(self, count: int) -> int:
        response = self._client.post("/api/badam/sync", json={"count": count})
        return int(self._json(response)["count"])

    def push_count_detached(self, count: int) -> None:
        # Non-daemon thread: the interpreter waits for it even if the caller moves on.
        cookies = httpx.Cookies(self._client.cookies)
        thread = Thread(
            target=self._deliver_detached,
            kwargs={"count": count, "cookies": cookies},
            name="badam-sync-detached",
            daemon=False,
        )
        thread.start()

    def sign_out(self) -> None:
        response = self._client.post("/api/signout")
        self._client.cookies.clear()
        if response.status_code == 401:
            return
        response.raise_for_status()

    def _deliver_detached(self, *, count: int, cookies: httpx.Cookies) -> None:
        try:
            with httpx.Client(
                base_url=self._base_url,
                timeout=self._timeout_seconds,
                transport=self._transport,
                cookies=cookies,
            ) as client:
                response = client.post("/api/badam/sync", json={"count": count})
                response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("badam_api_client: detached_sync_failed count=%s error=%s", count, exc)

    def _json(self, response: httpx.Response) -> dict:
        if response.status_code == 401:
            raise UnauthenticatedError(_detail(response))
        if response.status_code == 400:
            raise InvalidInputError(_detail(response))
        response.raise_for_status()
        return response.json()


def _detail(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text
    if isinstance(payload, dict):
        return str(payload.get("detail") or payload.get("error") or "")
    return str(payload)
