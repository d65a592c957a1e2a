"""SQLite storage for user accounts and login sessions."""

import contextlib
import hashlib
import hmac
import logging
import secrets
import sqlite3
import uuid
from pathlib import Path
from typing import Any

from daynotes.models import User

logger = logging.getLogger(__name__)

PBKDF2_ITERATIONS = 200_000


def hash_password(password: str, salt: bytes | None = None) -> str:
    """Hash a password as ``salt_hex$digest_hex`` using PBKDF2-SHA256."""
    salt = salt or secrets.token_bytes(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt, PBKDF2_ITERATIONS)
    return f"{salt.hex()}${digest.hex()}"


def verify_password(password: str, stored: str) -> bool:
    """Check a password against a stored hash in constant time."""
    try:
        salt_hex, digest_hex = stored.split("$", 1)
        salt = bytes.fromhex(salt_hex)
    except ValueError:
        return False
    candidate = hash_password(password, salt).split("$", 1)[1]
    return hmac.compare_digest(candidate, digest_hex)


class UserStore:
    """Users and their active sessions."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = db_path
        self._conn: sqlite3.Connection | None = None

    @property
    def conn(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._conn is None:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.execute("PRAGMA busy_timeout=5000")
            self._init_schema()
        return self._conn

    def _reconnect(self) -> None:
        """Close and discard the current connection."""
        if self._conn is not None:
            with contextlib.suppress(Exception):
                self._conn.close()
            self._conn = None

    def _init_schema(self) -> None:
        """Initialize the database schema."""
        self.conn.executescript("""
            CREATE TABLE IF NOT EXISTS users (
                uid TEXT PRIMARY KEY,
                email TEXT NOT NULL UNIQUE COLLATE NOCASE,
                password_hash TEXT NOT NULL,
                created_at INTEGER NOT NULL
            );

            CREATE TABLE IF NOT EXISTS sessions (
                session_id TEXT PRIMARY KEY,
                uid TEXT NOT NULL,
                created_at INTEGER NOT NULL,
                FOREIGN KEY (uid) REFERENCES users(uid)
            );
        """)
        self.conn.commit()

    def _execute(self, sql: str, params: tuple[Any, ...] = ()) -> sqlite3.Cursor:
        """Execute SQL with auto-reconnect on error."""
        try:
            return self.conn.execute(sql, params)
        except sqlite3.IntegrityError:
            raise
        except sqlite3.DatabaseError:
            logger.warning("UserStore: DatabaseError, reconnecting")
            self._reconnect()
            return self.conn.execute(sql, params)

    def create_user(self, email: str, password: str, created_at: int) -> User | None:
        """Create a user.

        Returns:
            The new User, or None if the email is already registered.
        """
        uid = uuid.uuid4().hex
        try:
            self._execute(
                "INSERT INTO users (uid, email, password_hash, created_at) VALUES (?, ?, ?, ?)",
                (uid, email, hash_password(password), created_at),
            )
        except sqlite3.IntegrityError:
            return None
        self.conn.commit()
        return User(uid=uid, email=email, created_at=created_at)

    def authenticate(self, email: str, password: str) -> User | None:
        """Return the user if the email/password pair is valid."""
        row = self._execute("SELECT * FROM users WHERE email = ?", (email,)).fetchone()
        if row is None or not verify_password(password, row["password_hash"]):
            return None
        return self._row_to_user(row)

    def get_user(self, uid: str) -> User | None:
        """Look up a user by id."""
        row = self._execute("SELECT * FROM users WHERE uid = ?", (uid,)).fetchone()
        return self._row_to_user(row) if row else None

    def create_session(self, uid: str, created_at: int) -> str:
        """Record a new active session and return its id."""
        session_id = uuid.uuid4().hex
        self._execute(
            "INSERT INTO sessions (session_id, uid, created_at) VALUES (?, ?, ?)",
            (session_id, uid, created_at),
        )
        self.conn.commit()
        return session_id

    def session_owner(self, session_id: str) -> str | None:
        """Return the uid owning an active session, if any."""
        row = self._execute(
            "SELECT uid FROM sessions WHERE session_id = ?", (session_id,)
        ).fetchone()
        return str(row["uid"]) if row else None

    def delete_session(self, session_id: str) -> str | None:
        """End a session, returning the uid it belonged to."""
        uid = self.session_owner(session_id)
        self._execute("DELETE FROM sessions WHERE session_id = ?", (session_id,))
        self.conn.commit()
        return uid

    def close(self) -> None:
        """Close the database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    @staticmethod
    def _row_to_user(row: sqlite3.Row) -> User:
        return User(uid=row["uid"], email=row["email"], created_at=row["created_at"])
