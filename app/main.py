from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app.api.routers.auth import router as auth_router
from app.api.routers.badam import router as badam_router
from app.api.routers.health import router as health_router
from app.api.routers.leaderboard import router as leaderboard_router
from app.api.routers.user import router as user_router
from app.infrastructure.db.engine import get_engine, init_database
from app.shared.config import get_settings, warn_on_missing_settings
from app.shared.logging_config import configure_logging


settings = get_settings()
configure_logging(settings.log_level)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    warn_on_missing_settings(settings)
    init_database(get_engine(settings.database_url))
    yield


app = FastAPI(title="Badam Rewards API", lifespan=lifespan)


def _validation_detail(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request."
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "invalid value")
    return f"Invalid request: {location} {message}".strip() if location else f"Invalid request: {message}"


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"detail": _validation_detail(exc)})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("main: unhandled_error method=%s path=%s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


app.include_router(health_router)
app.include_router(auth_router)
app.include_router(user_router)
app.include_router(badam_router)
app.include_router(leaderboard_router)
