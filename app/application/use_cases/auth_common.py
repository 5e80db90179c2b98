from __future__ import annotations

from datetime import datetime, timezone

from app.application.dto.auth import AccountOutput
from app.domain.entities.account import Account


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_email(email: str | None) -> str | None:
    if email is None:
        return None
    normalized = email.strip().lower()
    return normalized or None


def normalize_username(username: str | None) -> str:
    return (username or "").strip()


def build_account_output(account: Account) -> AccountOutput:
    return AccountOutput(
        id=account.id,
        username=account.public_name,
        email=account.email,
        avatar_url=account.avatar_url,
    )
