"""Email/password identity provider, session tokens, and the page auth gate."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import StrEnum

import jwt

from daynotes.dates import today_string
from daynotes.models import User
from daynotes.stores.notes import now_millis
from daynotes.stores.users import UserStore

logger = logging.getLogger(__name__)

SESSION_COOKIE = "daynotes_session"
MIN_PASSWORD_LENGTH = 6
AUTH_PATHS = ("/login", "/signup")

_JWT_ALGORITHM = "HS256"

AuthListener = Callable[[User | None], None]


class AuthError(Exception):
    """Raised for failed sign up or log in attempts."""


@dataclass
class Session:
    """A signed-in user and the token identifying the session."""

    user: User
    token: str


class IdentityProvider:
    """Issues and validates session tokens for users in a UserStore."""

    def __init__(self, user_store: UserStore, secret: str, ttl_hours: int = 24) -> None:
        self.user_store = user_store
        self._secret = secret
        self._ttl = timedelta(hours=ttl_hours)
        self._listeners: list[AuthListener] = []

    def on_auth_state_changed(self, listener: AuthListener) -> Callable[[], None]:
        """Subscribe to sign-in/sign-out events.

        The listener receives the user on sign in and None on sign out.

        Returns:
            A callable that removes the subscription.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, user: User | None) -> None:
        for listener in list(self._listeners):
            try:
                listener(user)
            except Exception:
                logger.warning("Auth state listener failed", exc_info=True)

    def sign_up(self, email: str, password: str) -> Session:
        """Register a new account and start a session for it."""
        email = email.strip().lower()
        if len(password) < MIN_PASSWORD_LENGTH:
            raise AuthError(f"Password should be at least {MIN_PASSWORD_LENGTH} characters")
        user = self.user_store.create_user(email, password, created_at=now_millis())
        if user is None:
            raise AuthError("Email already in use")
        logger.info("Registered user %s", user.uid)
        return self._start_session(user)

    def log_in(self, email: str, password: str) -> Session:
        """Verify credentials and start a session."""
        user = self.user_store.authenticate(email.strip().lower(), password)
        if user is None:
            raise AuthError("Invalid email or password")
        return self._start_session(user)

    def log_out(self, token: str | None) -> None:
        """End the session identified by token, if it is valid."""
        claims = self._decode(token)
        if claims is None:
            return
        uid = self.user_store.delete_session(str(claims.get("sid", "")))
        if uid:
            self._emit(None)

    def current_user(self, token: str | None) -> User | None:
        """Resolve a session token to its user, or None if invalid or ended."""
        claims = self._decode(token)
        if claims is None:
            return None
        uid = self.user_store.session_owner(str(claims.get("sid", "")))
        if uid is None or uid != claims.get("sub"):
            return None
        return self.user_store.get_user(uid)

    def _start_session(self, user: User) -> Session:
        session_id = self.user_store.create_session(user.uid, created_at=now_millis())
        now = datetime.now(UTC)
        token = jwt.encode(
            {"sub": user.uid, "sid": session_id, "iat": now, "exp": now + self._ttl},
            self._secret,
            algorithm=_JWT_ALGORITHM,
        )
        self._emit(user)
        return Session(user=user, token=token)

    def _decode(self, token: str | None) -> dict[str, object] | None:
        if not token:
            return None
        try:
            claims: dict[str, object] = jwt.decode(
                token, self._secret, algorithms=[_JWT_ALGORITHM]
            )
        except jwt.PyJWTError:
            logger.debug("Rejected session token", exc_info=True)
            return None
        return claims


# --- Auth gate ---


@dataclass
class AuthState:
    """Session state seen by a page: who is signed in, and whether that is known yet."""

    user: User | None = None
    loading: bool = True


class GateAction(StrEnum):
    """What a page should do for the current session state."""

    ALLOW = "allow"
    WAIT = "wait"
    REDIRECT = "redirect"


@dataclass(frozen=True)
class GateDecision:
    action: GateAction
    location: str | None = None


def is_auth_path(path: str) -> bool:
    """True for the login and signup pages."""
    return path.rstrip("/") in AUTH_PATHS


class AuthGate:
    """Routes users between the auth pages and the day pages.

    Holds the process-wide subscription to the identity provider's session
    changes.
    """

    def __init__(self, provider: IdentityProvider) -> None:
        self.provider = provider
        self.sign_ins = 0
        self.sign_outs = 0
        self._unsubscribe = provider.on_auth_state_changed(self._on_change)

    def _on_change(self, user: User | None) -> None:
        if user is None:
            self.sign_outs += 1
            logger.info("Session ended")
        else:
            self.sign_ins += 1
            logger.info("Session started for user %s", user.uid)

    def resolve(self, token: str | None) -> AuthState:
        """Look up the session behind a token."""
        return AuthState(user=self.provider.current_user(token), loading=False)

    def decide(self, path: str, state: AuthState) -> GateDecision:
        """Decide whether to render, wait, or redirect for this path."""
        on_auth_page = is_auth_path(path)
        if state.loading:
            if on_auth_page and state.user is None:
                return GateDecision(GateAction.ALLOW)
            return GateDecision(GateAction.WAIT)
        if path == "/":
            target = f"/{today_string()}" if state.user else "/login"
            return GateDecision(GateAction.REDIRECT, target)
        if state.user is None and not on_auth_page:
            return GateDecision(GateAction.REDIRECT, "/login")
        if state.user is not None and on_auth_page:
            return GateDecision(GateAction.REDIRECT, f"/{today_string()}")
        return GateDecision(GateAction.ALLOW)

    def close(self) -> None:
        """Drop the session-change subscription."""
        self._unsubscribe()
