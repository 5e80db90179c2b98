from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from app.application.dto.auth import FederatedIdentity, LoginGoogleInput, SignInInput, SignUpInput
from app.application.use_cases.federated_accounts import create_or_get_federated_account
from app.application.use_cases.login_google import LoginGoogleUseCase
from app.application.use_cases.session_manager import SessionManager
from app.application.use_cases.sign_in import INVALID_CREDENTIALS_MESSAGE, SignInUseCase
from app.application.use_cases.sign_up import SignUpUseCase
from app.domain.entities.account import Account, AuthSession
from app.domain.exceptions import (
    DuplicateUsernameError,
    FederatedIdentityConflictError,
    FederatedIdentityError,
    InvalidCredentialsError,
    InvalidInputError,
)


class FakeAccountPort:
    def __init__(self):
        self.accounts: dict[str, Account] = {}
        self.counts: dict[str, int] = {}
        self.sessions: dict[str, AuthSession] = {}
        self.fail_next_federated_create = False

    def execute_in_transaction(self, fn):
        return fn(self)

    def get_account_by_id(self, *, account_id: str) -> Account | None:
        return self.accounts.get(account_id)

    def get_account_by_username(self, *, username: str) -> Account | None:
        for account in self.accounts.values():
            if account.username == username:
                return account
        return None

    def get_local_account_by_username(self, *, username: str) -> Account | None:
        account = self.get_account_by_username(username=username)
        if account is None or account.password_hash is None:
            return None
        return account

    def get_account_by_google_id(self, *, google_id: str) -> Account | None:
        for account in self.accounts.values():
            if account.google_id == google_id:
                return account
        return None

    def get_account_by_verified_email(self, *, email: str) -> Account | None:
        for account in sorted(self.accounts.values(), key=lambda item: item.created_at):
            if account.email_verified and account.email and account.email.lower() == email.lower():
                return account
        return None

    def create_local_account(
        self,
        *,
        account_id: str,
        username: str,
        password_hash: str,
        email: str | None,
        created_at: datetime,
        email_verified: bool = False,
    ) -> Account:
        if self.get_account_by_username(username=username) is not None:
            raise DuplicateUsernameError("Username already exists")
        account = Account(
            id=account_id,
            username=username,
            password_hash=password_hash,
            google_id=None,
            email=email,
            display_name=None,
            avatar_url=None,
            created_at=created_at,
            email_verified=bool(email) and email_verified,
        )
        self.accounts[account.id] = account
        self.counts[account.id] = 0
        return account

    def create_federated_account(
        self,
        *,
        account_id: str,
        google_id: str,
        email: str | None,
        display_name: str,
        avatar_url: str | None,
        created_at: datetime,
    ) -> Account:
        if self.fail_next_federated_create:
            # Simulates a concurrent login that inserted the same google id first.
            self.fail_next_federated_create = False
            self.create_federated_account(
                account_id="winner",
                google_id=google_id,
                email=email,
                display_name=display_name,
                avatar_url=avatar_url,
                created_at=created_at,
            )
            raise FederatedIdentityConflictError("Federated identity already exists")
        if self.get_account_by_google_id(google_id=google_id) is not None:
            raise FederatedIdentityConflictError("Federated identity already exists")
        account = Account(
            id=account_id,
            username=None,
            password_hash=None,
            google_id=google_id,
            email=email,
            display_name=display_name,
            avatar_url=avatar_url,
            created_at=created_at,
            email_verified=email is not None,
        )
        self.accounts[account.id] = account
        self.counts[account.id] = 0
        return account

    def link_google_identity(self, *, account_id: str, google_id: str, avatar_url: str | None) -> Account | None:
        account = self.accounts[account_id]
        if account.google_id is not None:
            return None
        linked = replace(account, google_id=google_id, avatar_url=account.avatar_url or avatar_url)
        self.accounts[account_id] = linked
        return linked

    def update_password_hash(self, *, account_id: str, password_hash: str) -> None:
        self.accounts[account_id] = replace(self.accounts[account_id], password_hash=password_hash)

    def create_session(
        self,
        *,
        session_id: str,
        account_id: str,
        token_hash: str,
        expires_at: datetime,
        user_agent: str | None,
        ip: str | None,
        created_at: datetime,
    ) -> AuthSession:
        session = AuthSession(
            id=session_id,
            account_id=account_id,
            token_hash=token_hash,
            expires_at=expires_at,
            revoked_at=None,
            user_agent=user_agent,
            ip=ip,
            created_at=created_at,
        )
        self.sessions[session.id] = session
        return session

    def get_session_by_token_hash(self, *, token_hash: str) -> AuthSession | None:
        for session in self.sessions.values():
            if session.token_hash == token_hash:
                return session
        return None

    def revoke_session(self, *, session_id: str, revoked_at: datetime) -> None:
        session = self.sessions[session_id]
        self.sessions[session_id] = replace(session, revoked_at=revoked_at)

    def purge_expired_sessions(self, *, now: datetime) -> int:
        stale = [
            session_id
            for session_id, session in self.sessions.items()
            if session.revoked_at is not None or session.expires_at <= now
        ]
        for session_id in stale:
            del self.sessions[session_id]
        return len(stale)


class FakePasswordHasher:
    def hash(self, plain_password: str) -> str:
        return f"hashed::{plain_password}"

    def verify(self, plain_password: str, password_hash: str) -> bool:
        return password_hash == f"hashed::{plain_password}"

    def verify_and_update(self, plain_password: str, password_hash: str) -> tuple[bool, str | None]:
        if password_hash == f"legacy::{plain_password}":
            return True, self.hash(plain_password)
        return self.verify(plain_password, password_hash), None


class FakeTokenPort:
    def __init__(self):
        self._issued = 0

    def generate_session_token(self) -> str:
        self._issued += 1
        return f"session-token-{self._issued}"

    def hash_session_token(self, *, session_token: str) -> str:
        return f"hash::{session_token}"

    def session_expires_at(self, *, now: datetime) -> datetime:
        return now + timedelta(hours=24)

    def create_oauth_state(self, *, nonce: str, now: datetime) -> str:
        _ = now
        return f"state::{nonce}"

    def read_oauth_state(self, *, state: str) -> str:
        return state.removeprefix("state::")


class FakeGoogleOauthPort:
    def __init__(self, identity: FederatedIdentity | None = None, error: Exception | None = None):
        self.identity = identity or FederatedIdentity(
            subject="google-sub-1",
            email="User@Example.com",
            name="Jane Doe",
            picture="https://example.com/jane.png",
        )
        self.error = error

    def authorization_url(self, *, state: str) -> str:
        return f"https://accounts.example.com/auth?state={state}"

    def exchange_code(self, *, code: str) -> FederatedIdentity:
        assert code == "code-google"
        if self.error is not None:
            raise self.error
        return self.identity


def _session_manager(account_port: FakeAccountPort) -> SessionManager:
    return SessionManager(session_port=account_port, account_port=account_port, token_port=FakeTokenPort())


def _sign_up(account_port: FakeAccountPort, session_manager: SessionManager, username: str, password: str, email=None):
    use_case = SignUpUseCase(
        account_port=account_port,
        password_hasher=FakePasswordHasher(),
        session_manager=session_manager,
    )
    return use_case.execute(SignUpInput(username=username, password=password, email=email, user_agent="pytest", ip=None))


def test_sign_up_creates_account_with_zero_count_and_session():
    account_port = FakeAccountPort()
    session_manager = _session_manager(account_port)

    output = _sign_up(account_port, session_manager, "  alice ", "pw1")

    assert output.account.username == "alice"
    assert account_port.counts[output.account.id] == 0
    assert account_port.accounts[output.account.id].password_hash == "hashed::pw1"
    resolved = session_manager.resolve(token=output.session.token)
    assert resolved is not None
    assert resolved.id == output.account.id


def test_sign_up_rejects_duplicate_username():
    account_port = FakeAccountPort()
    session_manager = _session_manager(account_port)
    _sign_up(account_port, session_manager, "alice", "pw1")

    with pytest.raises(DuplicateUsernameError, match="Username already exists"):
        _sign_up(account_port, session_manager, "alice", "other")

    assert len(account_port.accounts) == 1


@pytest.mark.parametrize("username,password", [("", "pw"), ("alice", ""), ("   ", "pw")])
def test_sign_up_requires_username_and_password(username, password):
    account_port = FakeAccountPort()

    with pytest.raises(InvalidInputError):
        _sign_up(account_port, _session_manager(account_port), username, password)

    assert account_port.accounts == {}


def test_sign_in_returns_same_error_for_unknown_user_and_wrong_password():
    account_port = FakeAccountPort()
    session_manager = _session_manager(account_port)
    _sign_up(account_port, session_manager, "alice", "pw1")
    use_case = SignInUseCase(
        account_port=account_port,
        password_hasher=FakePasswordHasher(),
        session_manager=session_manager,
    )

    with pytest.raises(InvalidCredentialsError) as wrong_password:
        use_case.execute(SignInInput(username="alice", password="nope", user_agent=None, ip=None))
    with pytest.raises(InvalidCredentialsError) as unknown_user:
        use_case.execute(SignInInput(username="bob", password="pw1", user_agent=None, ip=None))

    assert str(wrong_password.value) == str(unknown_user.value) == INVALID_CREDENTIALS_MESSAGE

    output = use_case.execute(SignInInput(username="alice", password="pw1", user_agent="pytest", ip="127.0.0.1"))
    assert output.account.username == "alice"
    assert len(account_port.sessions) == 2


def test_sign_in_never_reaches_federated_only_account():
    account_port = FakeAccountPort()
    account = create_or_get_federated_account(
        account_port=account_port,
        identity=FederatedIdentity(subject="g-1", email=None, name="alice", picture=None),
    )
    use_case = SignInUseCase(
        account_port=account_port,
        password_hasher=FakePasswordHasher(),
        session_manager=_session_manager(account_port),
    )

    assert account.username is None
    with pytest.raises(InvalidCredentialsError):
        use_case.execute(SignInInput(username="alice", password="anything", user_agent=None, ip=None))


def test_federated_login_is_idempotent():
    account_port = FakeAccountPort()
    identity = FederatedIdentity(subject="g-1", email="jane@example.com", name="Jane", picture=None)

    first = create_or_get_federated_account(account_port=account_port, identity=identity)
    second = create_or_get_federated_account(account_port=account_port, identity=identity)

    assert first.id == second.id
    assert len(account_port.accounts) == 1
    assert account_port.counts[first.id] == 0
    assert first.public_name == "Jane"


def test_federated_login_links_local_account_with_same_verified_email():
    account_port = FakeAccountPort()
    local = account_port.create_local_account(
        account_id="local-1",
        username="alice",
        password_hash="hashed::pw1",
        email="alice@example.com",
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        email_verified=True,
    )

    account = create_or_get_federated_account(
        account_port=account_port,
        identity=FederatedIdentity(
            subject="g-1",
            email="alice@example.com",
            name="Alice G",
            picture="https://example.com/a.png",
        ),
    )

    assert account.id == local.id
    assert account.google_id == "g-1"
    assert account.password_hash == "hashed::pw1"
    assert account.avatar_url == "https://example.com/a.png"
    assert len(account_port.accounts) == 1

    again = create_or_get_federated_account(
        account_port=account_port,
        identity=FederatedIdentity(subject="g-1", email="alice@example.com", name=None, picture=None),
    )
    assert again.id == local.id


def test_unconfirmed_sign_up_email_is_never_linked_to_federated_identity():
    account_port = FakeAccountPort()
    session_manager = _session_manager(account_port)
    squatter = _sign_up(account_port, session_manager, "mallory", "pw1", email="Jane@Example.com")

    account = create_or_get_federated_account(
        account_port=account_port,
        identity=FederatedIdentity(subject="g-jane", email="jane@example.com", name="Jane", picture=None),
    )

    assert account.id != squatter.account.id
    assert account.google_id == "g-jane"
    assert account.username is None
    assert account.email_verified is True
    untouched = account_port.accounts[squatter.account.id]
    assert untouched.google_id is None
    assert untouched.email == "jane@example.com"
    assert untouched.email_verified is False


def test_federated_login_refuses_to_relink_account_owned_by_other_identity():
    account_port = FakeAccountPort()
    create_or_get_federated_account(
        account_port=account_port,
        identity=FederatedIdentity(subject="g-1", email="jane@example.com", name=None, picture=None),
    )

    with pytest.raises(FederatedIdentityConflictError):
        create_or_get_federated_account(
            account_port=account_port,
            identity=FederatedIdentity(subject="g-2", email="jane@example.com", name=None, picture=None),
        )

    assert account_port.get_account_by_google_id(google_id="g-2") is None


@pytest.mark.parametrize(
    "name,email,expected",
    [
        ("Jane", "jane@example.com", "Jane"),
        (None, "jane@example.com", "jane@example.com"),
        ("  ", None, "Google User"),
    ],
)
def test_new_federated_account_display_name_fallbacks(name, email, expected):
    account_port = FakeAccountPort()

    account = create_or_get_federated_account(
        account_port=account_port,
        identity=FederatedIdentity(subject="g-1", email=email, name=name, picture=None),
    )

    assert account.display_name == expected
    assert account.public_name == expected


def test_federated_create_race_returns_winning_account():
    account_port = FakeAccountPort()
    account_port.fail_next_federated_create = True

    account = create_or_get_federated_account(
        account_port=account_port,
        identity=FederatedIdentity(subject="g-1", email=None, name="Jane", picture=None),
    )

    assert account.id == "winner"
    assert len(account_port.accounts) == 1


def test_login_google_issues_session_for_resolved_account():
    account_port = FakeAccountPort()
    session_manager = _session_manager(account_port)
    use_case = LoginGoogleUseCase(
        account_port=account_port,
        google_oauth_port=FakeGoogleOauthPort(),
        session_manager=session_manager,
    )

    output = use_case.execute(LoginGoogleInput(code="code-google", user_agent="pytest", ip="127.0.0.1"))

    assert output.account.username == "Jane Doe"
    assert output.account.email == "user@example.com"
    resolved = session_manager.resolve(token=output.session.token)
    assert resolved is not None
    assert resolved.google_id == "google-sub-1"


def test_login_google_propagates_provider_failure_without_session():
    account_port = FakeAccountPort()
    use_case = LoginGoogleUseCase(
        account_port=account_port,
        google_oauth_port=FakeGoogleOauthPort(error=FederatedIdentityError("token exchange failed")),
        session_manager=_session_manager(account_port),
    )

    with pytest.raises(FederatedIdentityError):
        use_case.execute(LoginGoogleInput(code="code-google", user_agent=None, ip=None))

    assert account_port.accounts == {}
    assert account_port.sessions == {}


def test_session_expires_and_destroy_revokes():
    account_port = FakeAccountPort()
    session_manager = _session_manager(account_port)
    output = _sign_up(account_port, session_manager, "alice", "pw1")
    issued_at = datetime.now(timezone.utc)

    assert session_manager.resolve(token=output.session.token, now=issued_at + timedelta(hours=23)) is not None
    assert session_manager.resolve(token=output.session.token, now=issued_at + timedelta(hours=25)) is None

    assert session_manager.destroy(token=output.session.token) is True
    assert session_manager.resolve(token=output.session.token) is None
    assert session_manager.destroy(token=output.session.token) is False


def test_session_resolve_reads_fresh_account_and_ignores_unknown_tokens():
    account_port = FakeAccountPort()
    session_manager = _session_manager(account_port)
    output = _sign_up(account_port, session_manager, "alice", "pw1")
    account_id = output.account.id
    account_port.accounts[account_id] = replace(account_port.accounts[account_id], avatar_url="https://x/a.png")

    resolved = session_manager.resolve(token=output.session.token)

    assert resolved is not None
    assert resolved.avatar_url == "https://x/a.png"
    assert session_manager.resolve(token=None) is None
    assert session_manager.resolve(token="") is None
    assert session_manager.resolve(token="forged") is None
    assert session_manager.destroy(token=None) is False


def test_sign_in_upgrades_legacy_password_hash():
    account_port = FakeAccountPort()
    session_manager = _session_manager(account_port)
    output = _sign_up(account_port, session_manager, "alice", "pw1")
    account_id = output.account.id
    account_port.accounts[account_id] = replace(account_port.accounts[account_id], password_hash="legacy::pw1")
    use_case = SignInUseCase(
        account_port=account_port,
        password_hasher=FakePasswordHasher(),
        session_manager=session_manager,
    )

    use_case.execute(SignInInput(username="alice", password="pw1", user_agent=None, ip=None))

    assert account_port.accounts[account_id].password_hash == "hashed::pw1"


def test_issuing_a_session_purges_expired_and_revoked_rows():
    account_port = FakeAccountPort()
    session_manager = _session_manager(account_port)
    issued_at = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)
    account = _sign_up(account_port, session_manager, "alice", "pw1").account
    account_port.sessions.clear()
    old = session_manager.issue(account=account, now=issued_at)
    revoked = session_manager.issue(account=account, now=issued_at + timedelta(hours=20))
    session_manager.destroy(token=revoked.token, now=issued_at + timedelta(hours=21))

    fresh = session_manager.issue(account=account, now=issued_at + timedelta(hours=25))

    remaining = {session.token_hash for session in account_port.sessions.values()}
    assert remaining == {f"hash::{fresh.token}"}
    assert session_manager.resolve(token=old.token, now=issued_at + timedelta(hours=25)) is None
