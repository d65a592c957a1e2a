"""FastAPI application entry point."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.gzip import GZipMiddleware
from starlette.middleware.sessions import SessionMiddleware

from daynotes import __version__
from daynotes.api.auth import router as auth_router
from daynotes.api.categories import router as categories_router
from daynotes.api.dependencies import (
    get_auth_gate,
    get_note_store,
    get_session_secret,
    get_settings,
)
from daynotes.api.notes import router as notes_router
from daynotes.api.suggestions import router as suggestions_router
from daynotes.ui import UI_SESSION_COOKIE, GateInterrupt, gate_interrupt_handler
from daynotes.ui import router as pages_router

logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Log resolved configuration at startup and subscribe the auth gate."""
    s = get_settings()
    logger.info(
        "DayNotes starting: data_path=%s, suggestion_provider=%s",
        s.data_path,
        s.suggestion_provider,
    )
    missing = s.missing_api_key()
    if missing:
        logger.critical(
            "%s is missing, AI note ideas will fail until it is set and the server restarted",
            missing,
        )
    get_auth_gate()
    yield


app = FastAPI(
    title="DayNotes",
    description="Date-organized personal notes with AI note ideas",
    version=__version__,
    debug=settings.debug,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:8000", "http://127.0.0.1:8000"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(GZipMiddleware, minimum_size=500)
# Signed cookie session carrying one-shot toasts across redirects
app.add_middleware(
    SessionMiddleware,
    secret_key=get_session_secret(),
    session_cookie=UI_SESSION_COOKIE,
    same_site="lax",
    https_only=False,
)
app.add_exception_handler(GateInterrupt, gate_interrupt_handler)  # type: ignore[arg-type]

# Include API routers before the page router, whose /{day} route is a catch-all
app.include_router(auth_router)
app.include_router(categories_router)
app.include_router(notes_router)
app.include_router(suggestions_router)


@app.get("/health")
@app.get("/api/v1/health")
async def health() -> dict[str, Any]:
    """Health check endpoint with store and model configuration status."""
    s = get_settings()
    checks: dict[str, Any] = {"status": "ok", "version": __version__}

    try:
        get_note_store().conn.execute("SELECT 1")
        checks["store"] = "ok"
    except Exception:
        logger.warning("Health check could not reach the note store", exc_info=True)
        checks["status"] = "error"
        checks["store"] = "unavailable"

    if s.missing_api_key():
        if checks["status"] == "ok":
            checks["status"] = "warning"
        checks["suggestions"] = "api key missing"
    else:
        checks["suggestions"] = "ok"

    return checks


app.include_router(pages_router)
