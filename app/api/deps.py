from __future__ import annotations

from functools import lru_cache

from fastapi import Depends, HTTPException, Request

from app.application.use_cases.get_badam_count import GetBadamCountUseCase
from app.application.use_cases.get_current_user import GetCurrentUserUseCase
from app.application.use_cases.get_leaderboard import GetLeaderboardUseCase
from app.application.use_cases.login_google import LoginGoogleUseCase
from app.application.use_cases.session_manager import SessionManager
from app.application.use_cases.sign_in import SignInUseCase
from app.application.use_cases.sign_up import SignUpUseCase
from app.application.use_cases.sync_badam_count import SyncBadamCountUseCase
from app.application.use_cases.update_badam_count import UpdateBadamCountUseCase
from app.domain.entities.account import Account
from app.infrastructure.clients.google_oauth_client import GoogleOauthClient
from app.infrastructure.db.engine import get_engine
from app.infrastructure.db.repositories.accounts_repository import SqlAccountsRepository
from app.infrastructure.db.repositories.badam_counts_repository import SqlBadamCountsRepository
from app.infrastructure.security.password_hasher import PasswordHasher
from app.infrastructure.security.token_service import SessionTokenService
from app.shared.config import get_settings


def _get_db_engine():
    settings = get_settings()
    if not settings.database_url:
        raise HTTPException(status_code=500, detail="DATABASE_URL is required.")
    return get_engine(settings.database_url)


def get_accounts_repository() -> SqlAccountsRepository:
    return SqlAccountsRepository(_get_db_engine())


def get_badam_counts_repository() -> SqlBadamCountsRepository:
    return SqlBadamCountsRepository(_get_db_engine())


@lru_cache(maxsize=1)
def get_password_hasher() -> PasswordHasher:
    settings = get_settings()
    return PasswordHasher(time_cost=settings.password_hash_rounds)


@lru_cache(maxsize=1)
def get_token_service() -> SessionTokenService:
    settings = get_settings()
    if not settings.session_secret:
        raise HTTPException(status_code=500, detail="SESSION_SECRET is required.")
    return SessionTokenService(
        session_secret=settings.session_secret,
        session_ttl_hours=settings.session_ttl_hours,
    )


def get_google_oauth_client() -> GoogleOauthClient:
    settings = get_settings()
    if not settings.google_client_id or not settings.google_client_secret:
        raise HTTPException(status_code=500, detail="GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET are required.")
    return GoogleOauthClient(
        client_id=settings.google_client_id,
        client_secret=settings.google_client_secret,
        callback_url=settings.google_callback_url,
    )


def get_session_manager(
    accounts_repository: SqlAccountsRepository = Depends(get_accounts_repository),
    token_service: SessionTokenService = Depends(get_token_service),
) -> SessionManager:
    return SessionManager(
        session_port=accounts_repository,
        account_port=accounts_repository,
        token_port=token_service,
    )


def get_sign_up_use_case(
    accounts_repository: SqlAccountsRepository = Depends(get_accounts_repository),
    password_hasher: PasswordHasher = Depends(get_password_hasher),
    session_manager: SessionManager = Depends(get_session_manager),
) -> SignUpUseCase:
    return SignUpUseCase(
        account_port=accounts_repository,
        password_hasher=password_hasher,
        session_manager=session_manager,
    )


def get_sign_in_use_case(
    accounts_repository: SqlAccountsRepository = Depends(get_accounts_repository),
    password_hasher: PasswordHasher = Depends(get_password_hasher),
    session_manager: SessionManager = Depends(get_session_manager),
) -> SignInUseCase:
    return SignInUseCase(
        account_port=accounts_repository,
        password_hasher=password_hasher,
        session_manager=session_manager,
    )


def get_login_google_use_case(
    accounts_repository: SqlAccountsRepository = Depends(get_accounts_repository),
    google_oauth_client: GoogleOauthClient = Depends(get_google_oauth_client),
    session_manager: SessionManager = Depends(get_session_manager),
) -> LoginGoogleUseCase:
    return LoginGoogleUseCase(
        account_port=accounts_repository,
        google_oauth_port=google_oauth_client,
        session_manager=session_manager,
    )


def get_get_current_user_use_case() -> GetCurrentUserUseCase:
    return GetCurrentUserUseCase()


def get_get_badam_count_use_case(
    badam_counts_repository: SqlBadamCountsRepository = Depends(get_badam_counts_repository),
) -> GetBadamCountUseCase:
    return GetBadamCountUseCase(badam_count_port=badam_counts_repository)


def get_sync_badam_count_use_case(
    badam_counts_repository: SqlBadamCountsRepository = Depends(get_badam_counts_repository),
) -> SyncBadamCountUseCase:
    return SyncBadamCountUseCase(badam_count_port=badam_counts_repository)


def get_update_badam_count_use_case(
    badam_counts_repository: SqlBadamCountsRepository = Depends(get_badam_counts_repository),
) -> UpdateBadamCountUseCase:
    return UpdateBadamCountUseCase(badam_count_port=badam_counts_repository)


def get_get_leaderboard_use_case(
    badam_counts_repository: SqlBadamCountsRepository = Depends(get_badam_counts_repository),
) -> GetLeaderboardUseCase:
    settings = get_settings()
    return GetLeaderboardUseCase(
        leaderboard_port=badam_counts_repository,
        default_limit=settings.leaderboard_default_limit,
        max_limit=settings.leaderboard_max_limit,
    )


def get_session_token(request: Request) -> str | None:
    return request.cookies.get(get_settings().session_cookie_name)


def get_current_account(
    session_token: str | None = Depends(get_session_token),
    session_manager: SessionManager = Depends(get_session_manager),
) -> Account:
    account = session_manager.resolve(token=session_token)
    if account is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return account
