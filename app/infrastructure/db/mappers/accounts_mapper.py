from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping

from app.domain.entities.account import Account, AuthSession
from app.domain.entities.badam import BadamCount, LeaderboardEntry


def _as_str(value: Any) -> str:
    return str(value)


def _as_utc(value: Any) -> datetime:
    # SQLite hands timestamps back as ISO strings and drops the offset on some paths.
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _as_utc_or_none(value: Any) -> datetime | None:
    if value is None:
        return None
    return _as_utc(value)


def map_row_to_account(row: Mapping[str, Any]) -> Account:
    return Account(
        id=_as_str(row["id"]),
        username=row.get("username"),
        password_hash=row.get("password_hash"),
        google_id=row.get("google_id"),
        email=row.get("email"),
        display_name=row.get("display_name"),
        avatar_url=row.get("avatar_url"),
        created_at=_as_utc(row["created_at"]),
        email_verified=bool(row.get("email_verified")),
    )


def map_row_to_auth_session(row: Mapping[str, Any]) -> AuthSession:
    return AuthSession(
        id=_as_str(row["id"]),
        account_id=_as_str(row["account_id"]),
        token_hash=row["token_hash"],
        expires_at=_as_utc(row["expires_at"]),
        revoked_at=_as_utc_or_none(row.get("revoked_at")),
        user_agent=row.get("user_agent"),
        ip=row.get("ip"),
        created_at=_as_utc(row["created_at"]),
    )


def map_row_to_badam_count(row: Mapping[str, Any]) -> BadamCount:
    return BadamCount(
        account_id=_as_str(row["account_id"]),
        count=int(row["count"]),
        updated_at=_as_utc(row["updated_at"]),
    )


def map_row_to_leaderboard_entry(row: Mapping[str, Any]) -> LeaderboardEntry:
    return LeaderboardEntry(
        account_id=_as_str(row["account_id"]),
        name=row["name"],
        count=int(row["count"] or 0),
        created_at=_as_utc(row["created_at"]),
        avatar_url=row.get("avatar_url"),
    )
