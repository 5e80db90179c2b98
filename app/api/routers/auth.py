from __future__ import annotations

import logging
import secrets
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Header, HTTPException, Request, Response
from fastapi.responses import RedirectResponse

from app.api.deps import (
    get_google_oauth_client,
    get_login_google_use_case,
    get_session_manager,
    get_session_token,
    get_sign_in_use_case,
    get_sign_up_use_case,
    get_token_service,
)
from app.api.schemas.auth import CredentialsRequest, MessageResponse, SignUpRequest, UsernameResponse
from app.application.dto.auth import IssuedSession, LoginGoogleInput, SignInInput, SignUpInput
from app.application.use_cases.auth_common import utcnow
from app.application.use_cases.login_google import LoginGoogleUseCase
from app.application.use_cases.session_manager import SessionManager
from app.application.use_cases.sign_in import SignInUseCase
from app.application.use_cases.sign_up import SignUpUseCase
from app.domain.exceptions import (
    DuplicateUsernameError,
    FederatedIdentityError,
    InvalidCredentialsError,
    InvalidInputError,
)
from app.infrastructure.clients.google_oauth_client import GoogleOauthClient
from app.infrastructure.security.token_service import (
    OAUTH_STATE_TTL_MINUTES,
    SessionTokenService,
    generate_oauth_nonce,
)
from app.shared.config import get_settings


logger = logging.getLogger(__name__)

router = APIRouter()

OAUTH_NONCE_COOKIE_NAME = "badam_oauth_nonce"
OAUTH_COOKIE_PATH = "/api/auth/google"
MAIN_PAGE_URL = "/main.html"
GOOGLE_AUTH_FAILED_URL = "/index.html?error=google_auth_failed"


def _set_session_cookie(response: Response, session: IssuedSession) -> None:
    settings = get_settings()
    response.set_cookie(
        key=settings.session_cookie_name,
        value=session.token,
        httponly=True,
        # OAuth returns through a cross-site redirect chain in production.
        samesite="none" if settings.is_production else "lax",
        secure=settings.is_production,
        max_age=_cookie_max_age_seconds(session.expires_at),
        path="/",
    )


def _cookie_max_age_seconds(expires_at: datetime) -> int:
    now = datetime.now(timezone.utc)
    return max(int((expires_at - now).total_seconds()), 0)


def _client_ip(request: Request, x_forwarded_for: str | None) -> str | None:
    if x_forwarded_for:
        return x_forwarded_for.split(",")[0].strip() or None
    return request.client.host if request.client else None


def _google_failure_redirect() -> RedirectResponse:
    response = RedirectResponse(GOOGLE_AUTH_FAILED_URL, status_code=302)
    response.delete_cookie(key=OAUTH_NONCE_COOKIE_NAME, path=OAUTH_COOKIE_PATH)
    return response


@router.post("/api/signup", response_model=UsernameResponse)
def sign_up(
    req: SignUpRequest,
    request: Request,
    response: Response,
    user_agent: str | None = Header(default=None),
    x_forwarded_for: str | None = Header(default=None),
    use_case: SignUpUseCase = Depends(get_sign_up_use_case),
):
    try:
        output = use_case.execute(
            SignUpInput(
                username=req.username,
                password=req.password,
                email=req.email,
                user_agent=user_agent,
                ip=_client_ip(request, x_forwarded_for),
            )
        )
    except DuplicateUsernameError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except InvalidInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    _set_session_cookie(response, output.session)
    return UsernameResponse(message="User created successfully", username=output.account.username)


@router.post("/api/signin", response_model=UsernameResponse)
def sign_in(
    req: CredentialsRequest,
    request: Request,
    response: Response,
    user_agent: str | None = Header(default=None),
    x_forwarded_for: str | None = Header(default=None),
    use_case: SignInUseCase = Depends(get_sign_in_use_case),
):
    try:
        output = use_case.execute(
            SignInInput(
                username=req.username,
                password=req.password,
                user_agent=user_agent,
                ip=_client_ip(request, x_forwarded_for),
            )
        )
    except InvalidInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except InvalidCredentialsError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc

    _set_session_cookie(response, output.session)
    return UsernameResponse(message="Sign in successful", username=output.account.username)


@router.post("/api/signout", response_model=MessageResponse)
def sign_out(
    response: Response,
    session_token: str | None = Depends(get_session_token),
    session_manager: SessionManager = Depends(get_session_manager),
):
    session_manager.destroy(token=session_token)
    response.delete_cookie(key=get_settings().session_cookie_name, path="/")
    return MessageResponse(message="Signed out successfully")


@router.get("/api/auth/google")
def google_auth(
    google_oauth_client: GoogleOauthClient = Depends(get_google_oauth_client),
    token_service: SessionTokenService = Depends(get_token_service),
):
    nonce = generate_oauth_nonce()
    state = token_service.create_oauth_state(nonce=nonce, now=utcnow())

    response = RedirectResponse(google_oauth_client.authorization_url(state=state), status_code=302)
    response.set_cookie(
        key=OAUTH_NONCE_COOKIE_NAME,
        value=nonce,
        httponly=True,
        samesite="lax",
        secure=get_settings().is_production,
        max_age=OAUTH_STATE_TTL_MINUTES * 60,
        path=OAUTH_COOKIE_PATH,
    )
    return response


@router.get("/api/auth/google/callback")
def google_callback(
    request: Request,
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    user_agent: str | None = Header(default=None),
    x_forwarded_for: str | None = Header(default=None),
    token_service: SessionTokenService = Depends(get_token_service),
    use_case: LoginGoogleUseCase = Depends(get_login_google_use_case),
):
    if error or not code or not state:
        logger.warning("auth: google_callback_rejected reason=%s", error or "missing_code_or_state")
        return _google_failure_redirect()

    try:
        nonce = token_service.read_oauth_state(state=state)
    except ValueError as exc:
        logger.warning("auth: google_callback_rejected reason=%s", exc)
        return _google_failure_redirect()

    cookie_nonce = request.cookies.get(OAUTH_NONCE_COOKIE_NAME) or ""
    if not secrets.compare_digest(nonce, cookie_nonce):
        logger.warning("auth: google_callback_rejected reason=nonce_mismatch")
        return _google_failure_redirect()

    try:
        output = use_case.execute(
            LoginGoogleInput(
                code=code,
                user_agent=user_agent,
                ip=_client_ip(request, x_forwarded_for),
            )
        )
    except FederatedIdentityError as exc:
        logger.warning("auth: google_login_failed error=%s", exc)
        return _google_failure_redirect()

    response = RedirectResponse(MAIN_PAGE_URL, status_code=302)
    response.delete_cookie(key=OAUTH_NONCE_COOKIE_NAME, path=OAUTH_COOKIE_PATH)
    _set_session_cookie(response, output.session)
    return response
