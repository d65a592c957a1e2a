"""Tests for the identity provider and the page auth gate."""

from unittest.mock import MagicMock, patch

import jwt
import pytest

from daynotes.auth import (
    AuthError,
    AuthGate,
    AuthState,
    GateAction,
    GateDecision,
    IdentityProvider,
    is_auth_path,
)
from daynotes.models import User
from daynotes.stores.users import UserStore, hash_password, verify_password

TODAY = "2024-02-29"
USER = User(uid="u1", email="ada@mail.com", created_at=1)


class TestPasswords:
    def test_verify_accepts_original(self) -> None:
        stored = hash_password("secret123")
        assert verify_password("secret123", stored)

    def test_verify_rejects_other_password(self) -> None:
        stored = hash_password("secret123")
        assert not verify_password("secret124", stored)

    def test_verify_rejects_malformed_hash(self) -> None:
        assert not verify_password("secret123", "not-a-hash")

    def test_salted(self) -> None:
        assert hash_password("secret123") != hash_password("secret123")


class TestIdentityProvider:
    def test_sign_up_starts_session(self, provider: IdentityProvider) -> None:
        session = provider.sign_up("Ada@Mail.com ", "secret123")

        assert session.user.email == "ada@mail.com"
        assert provider.current_user(session.token) == session.user

    def test_sign_up_rejects_short_password(self, provider: IdentityProvider) -> None:
        with pytest.raises(AuthError, match="at least 6"):
            provider.sign_up("ada@mail.com", "12345")

    def test_sign_up_rejects_duplicate_email(self, provider: IdentityProvider) -> None:
        provider.sign_up("ada@mail.com", "secret123")
        with pytest.raises(AuthError, match="already in use"):
            provider.sign_up("ADA@mail.com", "other-secret")

    def test_log_in(self, provider: IdentityProvider) -> None:
        created = provider.sign_up("ada@mail.com", "secret123")

        session = provider.log_in("ada@mail.com", "secret123")

        assert session.user.uid == created.user.uid
        assert session.token != created.token

    def test_log_in_wrong_password(self, provider: IdentityProvider) -> None:
        provider.sign_up("ada@mail.com", "secret123")
        with pytest.raises(AuthError, match="Invalid email or password"):
            provider.log_in("ada@mail.com", "wrong-password")

    def test_log_in_unknown_email(self, provider: IdentityProvider) -> None:
        with pytest.raises(AuthError):
            provider.log_in("nobody@mail.com", "secret123")

    def test_log_out_ends_only_that_session(self, provider: IdentityProvider) -> None:
        first = provider.sign_up("ada@mail.com", "secret123")
        second = provider.log_in("ada@mail.com", "secret123")

        provider.log_out(first.token)

        assert provider.current_user(first.token) is None
        assert provider.current_user(second.token) == second.user

    def test_current_user_rejects_garbage(self, provider: IdentityProvider) -> None:
        assert provider.current_user(None) is None
        assert provider.current_user("") is None
        assert provider.current_user("not.a.jwt") is None

    def test_current_user_rejects_foreign_signature(self, provider: IdentityProvider) -> None:
        session = provider.sign_up("ada@mail.com", "secret123")
        claims = jwt.decode(session.token, "test-secret", algorithms=["HS256"])
        forged = jwt.encode(claims, "another-secret", algorithm="HS256")

        assert provider.current_user(forged) is None

    def test_current_user_rejects_expired_token(self, user_store: UserStore) -> None:
        provider = IdentityProvider(user_store, secret="test-secret", ttl_hours=-1)
        session = provider.sign_up("ada@mail.com", "secret123")

        assert provider.current_user(session.token) is None

    def test_events_on_sign_in_and_out(self, provider: IdentityProvider) -> None:
        listener = MagicMock()
        provider.on_auth_state_changed(listener)

        session = provider.sign_up("ada@mail.com", "secret123")
        provider.log_out(session.token)

        assert [c.args[0] for c in listener.call_args_list] == [session.user, None]

    def test_unsubscribe(self, provider: IdentityProvider) -> None:
        listener = MagicMock()
        unsubscribe = provider.on_auth_state_changed(listener)

        unsubscribe()
        unsubscribe()
        provider.sign_up("ada@mail.com", "secret123")

        listener.assert_not_called()

    def test_failing_listener_does_not_break_sign_in(self, provider: IdentityProvider) -> None:
        provider.on_auth_state_changed(MagicMock(side_effect=RuntimeError("boom")))

        session = provider.sign_up("ada@mail.com", "secret123")

        assert provider.current_user(session.token) is not None

    def test_log_out_invalid_token_emits_nothing(self, provider: IdentityProvider) -> None:
        listener = MagicMock()
        provider.on_auth_state_changed(listener)

        provider.log_out("garbage")

        listener.assert_not_called()


class TestAuthGate:
    @pytest.fixture
    def gate(self, provider: IdentityProvider):
        gate = AuthGate(provider)
        yield gate
        gate.close()

    @pytest.fixture(autouse=True)
    def fixed_today(self):
        with patch("daynotes.auth.today_string", return_value=TODAY):
            yield

    def test_is_auth_path(self) -> None:
        assert is_auth_path("/login")
        assert is_auth_path("/signup")
        assert not is_auth_path("/2024-02-29")
        assert not is_auth_path("/")

    @pytest.mark.parametrize("path", ["/login-anything", "/signups", "/login/extra"])
    def test_is_auth_path_requires_exact_match(self, path: str) -> None:
        assert not is_auth_path(path)

    def test_is_auth_path_allows_trailing_slash(self) -> None:
        assert is_auth_path("/login/")

    def test_lookalike_path_is_gated(self, gate: AuthGate) -> None:
        decision = gate.decide("/login-anything", AuthState(loading=False))
        assert decision == GateDecision(GateAction.REDIRECT, "/login")

    @pytest.mark.parametrize(
        ("path", "state", "expected"),
        [
            ("/2024-02-29", AuthState(loading=True), GateDecision(GateAction.WAIT)),
            ("/2024-02-29", AuthState(USER, loading=True), GateDecision(GateAction.WAIT)),
            ("/login", AuthState(loading=True), GateDecision(GateAction.ALLOW)),
            ("/login", AuthState(USER, loading=True), GateDecision(GateAction.WAIT)),
            ("/", AuthState(USER, loading=False), GateDecision(GateAction.REDIRECT, f"/{TODAY}")),
            ("/", AuthState(loading=False), GateDecision(GateAction.REDIRECT, "/login")),
            (
                "/2024-02-29",
                AuthState(loading=False),
                GateDecision(GateAction.REDIRECT, "/login"),
            ),
            (
                "/2024-02-29/categories/c1",
                AuthState(loading=False),
                GateDecision(GateAction.REDIRECT, "/login"),
            ),
            (
                "/signup",
                AuthState(USER, loading=False),
                GateDecision(GateAction.REDIRECT, f"/{TODAY}"),
            ),
            ("/signup", AuthState(loading=False), GateDecision(GateAction.ALLOW)),
            ("/2023-01-01", AuthState(USER, loading=False), GateDecision(GateAction.ALLOW)),
        ],
    )
    def test_decide(
        self, gate: AuthGate, path: str, state: AuthState, expected: GateDecision
    ) -> None:
        assert gate.decide(path, state) == expected

    def test_resolve(self, gate: AuthGate, provider: IdentityProvider) -> None:
        session = provider.sign_up("ada@mail.com", "secret123")

        assert gate.resolve(session.token) == AuthState(user=session.user, loading=False)
        assert gate.resolve(None) == AuthState(user=None, loading=False)

    def test_counts_session_changes(self, gate: AuthGate, provider: IdentityProvider) -> None:
        session = provider.sign_up("ada@mail.com", "secret123")
        provider.log_out(session.token)

        assert gate.sign_ins == 1
        assert gate.sign_outs == 1

    def test_close_unsubscribes(self, gate: AuthGate, provider: IdentityProvider) -> None:
        gate.close()
        provider.sign_up("ada@mail.com", "secret123")

        assert gate.sign_ins == 0
