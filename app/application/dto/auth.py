from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class AccountOutput:
    id: str
    username: str
    email: str | None
    avatar_url: str | None


@dataclass(frozen=True)
class SignUpInput:
    username: str
    password: str
    email: str | None
    user_agent: str | None
    ip: str | None


@dataclass(frozen=True)
class SignInInput:
    username: str
    password: str
    user_agent: str | None
    ip: str | None


@dataclass(frozen=True)
class LoginGoogleInput:
    code: str
    user_agent: str | None
    ip: str | None


@dataclass(frozen=True)
class IssuedSession:
    token: str
    account_id: str
    expires_at: datetime


@dataclass(frozen=True)
class AuthSessionOutput:
    account: AccountOutput
    session: IssuedSession


@dataclass(frozen=True)
class FederatedIdentity:
    subject: str
    email: str | None
    name: str | None
    picture: str | None
