"""Sign up, log in, and log out endpoints for API clients."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response

from daynotes.api.dependencies import get_current_user, get_identity_provider, get_session_token
from daynotes.auth import SESSION_COOKIE, AuthError, IdentityProvider, Session
from daynotes.models import Credentials, SessionResponse, User

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])

Provider = Annotated[IdentityProvider, Depends(get_identity_provider)]


def _session_response(response: Response, session: Session) -> SessionResponse:
    response.set_cookie(SESSION_COOKIE, session.token, httponly=True, samesite="lax")
    return SessionResponse(user=session.user, token=session.token)


@router.post("/signup", response_model=SessionResponse, status_code=201)
async def signup(body: Credentials, response: Response, provider: Provider) -> SessionResponse:
    """Create an account and start a session."""
    try:
        session = provider.sign_up(body.email, body.password)
    except AuthError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return _session_response(response, session)


@router.post("/login", response_model=SessionResponse)
async def login(body: Credentials, response: Response, provider: Provider) -> SessionResponse:
    """Start a session for an existing account."""
    try:
        session = provider.log_in(body.email, body.password)
    except AuthError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e
    return _session_response(response, session)


@router.post("/logout", status_code=204)
async def logout(
    token: Annotated[str | None, Depends(get_session_token)], provider: Provider
) -> Response:
    """End the current session."""
    provider.log_out(token)
    response = Response(status_code=204)
    response.delete_cookie(SESSION_COOKIE)
    return response


@router.get("/me", response_model=User)
async def me(user: Annotated[User, Depends(get_current_user)]) -> User:
    """Return the signed-in user."""
    return user
