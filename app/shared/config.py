from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv


load_dotenv()

logger = logging.getLogger(__name__)

DEV_SESSION_SECRET = "badam-rewards-secret-key-change-in-production"
PRODUCTION_CALLBACK_URL = "https://badam-rewards.onrender.com/api/auth/google/callback"
DEVELOPMENT_CALLBACK_URL = "http://localhost:3000/api/auth/google/callback"


def _env(name: str, default: str | None = None) -> str | None:
    return os.getenv(name, default)


def _float_or_none(name: str) -> float | None:
    value = _env(name)
    if not value:
        return None
    return float(value)


def _database_url() -> str:
    url = _env("DATABASE_URL", "")
    if not url:
        user = _env("DB_USER", "postgres")
        password = _env("DB_PASSWORD", "postgres")
        host = _env("DB_HOST", "localhost")
        port = _env("DB_PORT", "5432")
        name = _env("DB_NAME", "badam_rewards")
        return f"postgresql+psycopg://{user}:{password}@{host}:{port}/{name}"
    return normalize_database_url(url)


def normalize_database_url(url: str) -> str:
    # Hosted Postgres providers hand out postgres:// URLs, which SQLAlchemy rejects.
    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            return "postgresql+psycopg://" + url[len(prefix):]
    return url


@dataclass(frozen=True)
class Settings:
    app_env: str
    database_url: str
    session_secret: str
    session_ttl_hours: int
    session_cookie_name: str
    password_hash_rounds: int
    google_client_id: str
    google_client_secret: str
    google_callback_url: str
    leaderboard_default_limit: int
    leaderboard_max_limit: int
    log_level: str
    badam_api_base_url: str
    badam_sync_debounce_seconds: float
    badam_sync_retry_seconds: float | None

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"


def get_settings() -> Settings:
    app_env = _env("APP_ENV", "development")
    default_callback = PRODUCTION_CALLBACK_URL if app_env == "production" else DEVELOPMENT_CALLBACK_URL
    return Settings(
        app_env=app_env,
        database_url=_database_url(),
        session_secret=_env("SESSION_SECRET", DEV_SESSION_SECRET),
        session_ttl_hours=int(_env("SESSION_TTL_HOURS", "24")),
        session_cookie_name=_env("SESSION_COOKIE_NAME", "badam_session"),
        password_hash_rounds=int(_env("PASSWORD_HASH_ROUNDS", "3")),
        google_client_id=_env("GOOGLE_CLIENT_ID", ""),
        google_client_secret=_env("GOOGLE_CLIENT_SECRET", ""),
        google_callback_url=_env("GOOGLE_CALLBACK_URL", default_callback),
        leaderboard_default_limit=int(_env("LEADERBOARD_DEFAULT_LIMIT", "10")),
        leaderboard_max_limit=int(_env("LEADERBOARD_MAX_LIMIT", "100")),
        log_level=_env("LOG_LEVEL", "INFO"),
        badam_api_base_url=_env("BADAM_API_BASE_URL", "http://localhost:3000"),
        badam_sync_debounce_seconds=float(_env("BADAM_SYNC_DEBOUNCE_SECONDS", "10")),
        badam_sync_retry_seconds=_float_or_none("BADAM_SYNC_RETRY_SECONDS"),
    )


def warn_on_missing_settings(settings: Settings) -> None:
    if not settings.google_client_id or not settings.google_client_secret:
        logger.warning("config: google_oauth_disabled reason=GOOGLE_CLIENT_ID/GOOGLE_CLIENT_SECRET not set")
    if settings.session_secret == DEV_SESSION_SECRET:
        if settings.is_production:
            logger.error("config: default_session_secret app_env=production")
        else:
            logger.warning("config: default_session_secret app_env=%s", settings.app_env)
