"""Shared test fixtures."""

import itertools
from collections.abc import Callable, Iterator
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from daynotes.api.dependencies import (
    get_auth_gate,
    get_identity_provider,
    get_note_store,
    get_suggestion_service,
)
from daynotes.auth import AuthGate, IdentityProvider
from daynotes.main import app
from daynotes.stores.notes import NoteStore
from daynotes.stores.users import UserStore


class FakeClock:
    """Monotonic epoch-millisecond clock, one tick per call."""

    def __init__(self, start: int = 1_700_000_000_000, step: int = 1000) -> None:
        self._ticks = itertools.count(start, step)

    def __call__(self) -> int:
        return next(self._ticks)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def note_store(tmp_path: Path, clock: FakeClock) -> Iterator[NoteStore]:
    store = NoteStore(tmp_path / "daynotes.db", clock=clock)
    yield store
    store.close()


@pytest.fixture
def user_store(tmp_path: Path) -> Iterator[UserStore]:
    store = UserStore(tmp_path / "daynotes.db")
    yield store
    store.close()


@pytest.fixture
def provider(user_store: UserStore) -> IdentityProvider:
    return IdentityProvider(user_store, secret="test-secret", ttl_hours=1)


@pytest.fixture
def suggestion_service() -> MagicMock:
    return MagicMock()


@pytest.fixture
def client(
    note_store: NoteStore, provider: IdentityProvider, suggestion_service: MagicMock
) -> Iterator[TestClient]:
    """Test client wired to temp stores and a mocked suggestion service."""
    gate = AuthGate(provider)
    app.dependency_overrides[get_note_store] = lambda: note_store
    app.dependency_overrides[get_identity_provider] = lambda: provider
    app.dependency_overrides[get_auth_gate] = lambda: gate
    app.dependency_overrides[get_suggestion_service] = lambda: suggestion_service
    try:
        yield TestClient(app, follow_redirects=False)
    finally:
        app.dependency_overrides.clear()
        gate.close()


@pytest.fixture
def sign_up(client: TestClient) -> Callable[..., dict]:
    """Create accounts through the API; the client keeps the latest session cookie."""

    def _sign_up(email: str = "ada@mail.com", password: str = "secret123") -> dict:
        res = client.post("/api/v1/auth/signup", json={"email": email, "password": password})
        assert res.status_code == 201, res.text
        return res.json()

    return _sign_up


@pytest.fixture
def signed_in(sign_up: Callable[..., dict]) -> dict:
    return sign_up()
