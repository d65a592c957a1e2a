"""FastAPI dependency injection for shared resources."""

import logging
import secrets
from functools import lru_cache
from pathlib import Path
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request

from daynotes.auth import SESSION_COOKIE, AuthGate, IdentityProvider
from daynotes.config import Settings
from daynotes.dates import is_valid_date_string
from daynotes.models import User
from daynotes.stores.notes import NoteStore
from daynotes.stores.users import UserStore
from daynotes.suggestions.engine import SuggestionService
from daynotes.suggestions.llm_client import LLMClient

logger = logging.getLogger(__name__)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


@lru_cache
def get_data_path() -> Path:
    """Get the data directory path."""
    settings = get_settings()
    data_path = Path(settings.data_path) if settings.data_path else Path("data")
    data_path.mkdir(parents=True, exist_ok=True)
    return data_path


@lru_cache
def get_note_store() -> NoteStore:
    """Get cached note store instance."""
    return NoteStore(get_data_path() / get_settings().db_name)


@lru_cache
def get_user_store() -> UserStore:
    """Get cached user store instance."""
    return UserStore(get_data_path() / get_settings().db_name)


@lru_cache
def get_session_secret() -> str:
    """Signing key for session tokens; random per process when unset."""
    secret = get_settings().session_secret
    if not secret:
        logger.warning(
            "DAYNOTES_SESSION_SECRET not set, sessions will not survive a restart"
        )
        secret = secrets.token_urlsafe(32)
    return secret


@lru_cache
def get_identity_provider() -> IdentityProvider:
    """Get cached identity provider instance."""
    return IdentityProvider(
        user_store=get_user_store(),
        secret=get_session_secret(),
        ttl_hours=get_settings().session_ttl_hours,
    )


@lru_cache
def get_auth_gate() -> AuthGate:
    """Get the process-wide auth gate."""
    return AuthGate(get_identity_provider())


@lru_cache
def get_llm_client() -> LLMClient:
    """Get cached LLM client instance."""
    return LLMClient(get_settings())


@lru_cache
def get_suggestion_service() -> SuggestionService:
    """Get cached suggestion service instance."""
    return SuggestionService(get_llm_client())


def get_session_token(
    request: Request,
    authorization: Annotated[str | None, Header()] = None,
) -> str | None:
    """Read the session token from a Bearer header or the session cookie."""
    if authorization and authorization.lower().startswith("bearer "):
        return authorization[7:].strip()
    return request.cookies.get(SESSION_COOKIE)


def get_current_user(
    token: Annotated[str | None, Depends(get_session_token)],
    provider: Annotated[IdentityProvider, Depends(get_identity_provider)],
) -> User:
    """Require an authenticated user for JSON API routes."""
    user = provider.current_user(token)
    if user is None:
        raise HTTPException(status_code=401, detail="User not authenticated")
    return user


def valid_day(day: str) -> str:
    """Path parameter check for YYYY-MM-DD day keys."""
    if not is_valid_date_string(day):
        raise HTTPException(status_code=404, detail="Invalid Date")
    return day
