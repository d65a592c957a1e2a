"""SQLite document store for per-day categories and their notes.

Rows mirror the hierarchy ``users/{uid}/days/{date}/categories/{categoryId}``
and ``.../notes/{noteId}``: every row carries its full parent path.
"""

import contextlib
import logging
import sqlite3
import time
import uuid
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

from daynotes.models import Category, CategoryUpdate, Note, NoteCreate, NoteUpdate

logger = logging.getLogger(__name__)

PREDEFINED_CATEGORIES: list[dict[str, str]] = [
    {"name": "Movies", "icon": "🎬"},
    {"name": "Shopping", "icon": "🛍️"},
    {"name": "Home", "icon": "🏠"},
    {"name": "Other", "icon": "✏️"},
    {"name": "Bills", "icon": "🧾"},
    {"name": "Income", "icon": "💰"},
    {"name": "Food & Drinks", "icon": "🍔"},
]


class NotAuthenticatedError(PermissionError):
    """Raised when a store operation is attempted without a user."""


class NotFoundError(LookupError):
    """Raised when a category or note does not exist."""


def now_millis() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


def require_user(uid: str | None) -> str:
    """Return uid, or raise if no user is authenticated."""
    if not uid:
        raise NotAuthenticatedError("User not authenticated")
    return uid


def _new_id() -> str:
    return uuid.uuid4().hex


class NoteStore:
    """Categories and notes scoped to (user, date) and (user, date, category)."""

    def __init__(self, db_path: Path, clock: Callable[[], int] = now_millis) -> None:
        """Initialize the note store.

        Args:
            db_path: Path to the SQLite database file.
            clock: Source of epoch-millisecond timestamps.
        """
        self.db_path = db_path
        self.clock = clock
        self._conn: sqlite3.Connection | None = None

    @property
    def conn(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._conn is None:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            # Autocommit mode; multi-statement writes use explicit transactions
            self._conn = sqlite3.connect(
                str(self.db_path), check_same_thread=False, isolation_level=None
            )
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
            CREATE TABLE IF NOT EXISTS categories (
                uid TEXT NOT NULL,
                day TEXT NOT NULL,
                category_id TEXT NOT NULL,
                name TEXT NOT NULL,
                icon TEXT NOT NULL,
                created_at INTEGER NOT NULL,
                PRIMARY KEY (uid, day, category_id)
            );

            CREATE TABLE IF NOT EXISTS notes (
                uid TEXT NOT NULL,
                day TEXT NOT NULL,
                category_id TEXT NOT NULL,
                note_id TEXT NOT NULL,
                text TEXT NOT NULL,
                image_url TEXT,
                voice_url TEXT,
                is_favorite INTEGER NOT NULL DEFAULT 0,
                created_at INTEGER NOT NULL,
                updated_at INTEGER NOT NULL,
                PRIMARY KEY (uid, day, category_id, note_id)
            );

            CREATE INDEX IF NOT EXISTS idx_categories_day_created
                ON categories(uid, day, created_at);
            CREATE INDEX IF NOT EXISTS idx_notes_category_created
                ON notes(uid, day, category_id, created_at);
        """)

    def _execute(self, sql: str, params: tuple[Any, ...] = ()) -> sqlite3.Cursor:
        """Execute SQL with auto-reconnect on error."""
        try:
            return self.conn.execute(sql, params)
        except sqlite3.DatabaseError:
            logger.warning("NoteStore: DatabaseError, reconnecting")
            self._reconnect()
            return self.conn.execute(sql, params)

    @contextlib.contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Run a block under the database write lock, rolling back on error."""
        conn = self.conn
        conn.execute("BEGIN IMMEDIATE")
        try:
            yield conn
        except BaseException:
            conn.execute("ROLLBACK")
            raise
        conn.execute("COMMIT")

    # --- Categories ---

    def add_category(self, uid: str | None, day: str, name: str, icon: str) -> Category:
        """Create a category for the day and return it with a zero note count."""
        uid = require_user(uid)
        category = Category(
            id=_new_id(), name=name, icon=icon, note_count=0, created_at=self.clock()
        )
        self._execute(
            "INSERT INTO categories (uid, day, category_id, name, icon, created_at)"
            " VALUES (?, ?, ?, ?, ?, ?)",
            (uid, day, category.id, category.name, category.icon, category.created_at),
        )
        logger.info("Added category %s (%s) for %s", category.id, name, day)
        return category

    def get_categories(self, uid: str | None, day: str) -> list[Category]:
        """List the day's categories, oldest first, with live note counts."""
        uid = require_user(uid)
        cursor = self._execute(
            """
            SELECT c.category_id, c.name, c.icon, c.created_at,
                   (SELECT COUNT(*) FROM notes n
                    WHERE n.uid = c.uid AND n.day = c.day
                    AND n.category_id = c.category_id) AS note_count
            FROM categories c
            WHERE c.uid = ? AND c.day = ?
            ORDER BY c.created_at ASC, c.rowid ASC
            """,
            (uid, day),
        )
        return [self._row_to_category(row) for row in cursor.fetchall()]

    def get_category(self, uid: str | None, day: str, category_id: str) -> Category:
        """Fetch a single category with its note count."""
        uid = require_user(uid)
        cursor = self._execute(
            """
            SELECT c.category_id, c.name, c.icon, c.created_at,
                   (SELECT COUNT(*) FROM notes n
                    WHERE n.uid = c.uid AND n.day = c.day
                    AND n.category_id = c.category_id) AS note_count
            FROM categories c
            WHERE c.uid = ? AND c.day = ? AND c.category_id = ?
            """,
            (uid, day, category_id),
        )
        row = cursor.fetchone()
        if row is None:
            raise NotFoundError(f"Category {category_id} not found")
        return self._row_to_category(row)

    def update_category(
        self, uid: str | None, day: str, category_id: str, fields: CategoryUpdate
    ) -> None:
        """Apply a partial name/icon update."""
        uid = require_user(uid)
        changes = fields.model_dump(exclude_unset=True, exclude_none=True)
        if not changes:
            # Still surface a missing category
            self.get_category(uid, day, category_id)
            return
        assignments = ", ".join(f"{column} = ?" for column in changes)
        cursor = self._execute(
            f"UPDATE categories SET {assignments}"  # noqa: S608 - columns come from the model
            " WHERE uid = ? AND day = ? AND category_id = ?",
            (*changes.values(), uid, day, category_id),
        )
        if cursor.rowcount == 0:
            raise NotFoundError(f"Category {category_id} not found")

    def delete_category(self, uid: str | None, day: str, category_id: str) -> None:
        """Delete a category and all of its notes in one transaction."""
        uid = require_user(uid)
        with self._transaction() as conn:
            deleted_notes = conn.execute(
                "DELETE FROM notes WHERE uid = ? AND day = ? AND category_id = ?",
                (uid, day, category_id),
            ).rowcount
            conn.execute(
                "DELETE FROM categories WHERE uid = ? AND day = ? AND category_id = ?",
                (uid, day, category_id),
            )
        logger.info("Deleted category %s and %d notes for %s", category_id, deleted_notes, day)

    def add_predefined_categories_if_needed(self, uid: str | None, day: str) -> bool:
        """Seed the starter categories when the day has none.

        The emptiness check and the inserts share one write transaction, so
        concurrent first visits produce a single seed set.

        Returns:
            True if the seed set was inserted.
        """
        uid = require_user(uid)
        with self._transaction() as conn:
            row = conn.execute(
                "SELECT COUNT(*) FROM categories WHERE uid = ? AND day = ?", (uid, day)
            ).fetchone()
            if row[0]:
                return False
            created_at = self.clock()
            conn.executemany(
                "INSERT INTO categories (uid, day, category_id, name, icon, created_at)"
                " VALUES (?, ?, ?, ?, ?, ?)",
                [
                    (uid, day, _new_id(), seed["name"], seed["icon"], created_at)
                    for seed in PREDEFINED_CATEGORIES
                ],
            )
        logger.info("Seeded %d predefined categories for %s", len(PREDEFINED_CATEGORIES), day)
        return True

    # --- Notes ---

    def add_note(
        self, uid: str | None, day: str, category_id: str, data: NoteCreate
    ) -> Note:
        """Create a note under an existing category."""
        uid = require_user(uid)
        now = self.clock()
        note = Note(
            id=_new_id(),
            text=data.text,
            image_url=data.image_url,
            is_favorite=data.is_favorite,
            created_at=now,
            updated_at=now,
        )
        with self._transaction() as conn:
            parent = conn.execute(
                "SELECT 1 FROM categories WHERE uid = ? AND day = ? AND category_id = ?",
                (uid, day, category_id),
            ).fetchone()
            if parent is None:
                raise NotFoundError(f"Category {category_id} not found")
            conn.execute(
                """
                INSERT INTO notes (uid, day, category_id, note_id, text, image_url,
                                   voice_url, is_favorite, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    uid,
                    day,
                    category_id,
                    note.id,
                    note.text,
                    note.image_url,
                    note.voice_url,
                    int(note.is_favorite),
                    note.created_at,
                    note.updated_at,
                ),
            )
        return note

    def get_notes(self, uid: str | None, day: str, category_id: str) -> list[Note]:
        """List a category's notes, newest first."""
        uid = require_user(uid)
        cursor = self._execute(
            """
            SELECT * FROM notes
            WHERE uid = ? AND day = ? AND category_id = ?
            ORDER BY created_at DESC, rowid DESC
            """,
            (uid, day, category_id),
        )
        return [self._row_to_note(row) for row in cursor.fetchall()]

    def get_note(self, uid: str | None, day: str, category_id: str, note_id: str) -> Note:
        """Fetch a single note."""
        uid = require_user(uid)
        row = self._execute(
            "SELECT * FROM notes WHERE uid = ? AND day = ? AND category_id = ? AND note_id = ?",
            (uid, day, category_id, note_id),
        ).fetchone()
        if row is None:
            raise NotFoundError(f"Note {note_id} not found")
        return self._row_to_note(row)

    def update_note(
        self, uid: str | None, day: str, category_id: str, note_id: str, fields: NoteUpdate
    ) -> None:
        """Apply a partial update and stamp a fresh updatedAt."""
        uid = require_user(uid)
        changes: dict[str, Any] = fields.model_dump(exclude_unset=True)
        # text and is_favorite cannot be cleared, only image_url can
        changes = {k: v for k, v in changes.items() if v is not None or k == "image_url"}
        if "is_favorite" in changes:
            changes["is_favorite"] = int(changes["is_favorite"])
        changes["updated_at"] = self.clock()
        assignments = ", ".join(f"{column} = ?" for column in changes)
        cursor = self._execute(
            f"UPDATE notes SET {assignments}"  # noqa: S608 - columns come from the model
            " WHERE uid = ? AND day = ? AND category_id = ? AND note_id = ?",
            (*changes.values(), uid, day, category_id, note_id),
        )
        if cursor.rowcount == 0:
            raise NotFoundError(f"Note {note_id} not found")

    def delete_note(self, uid: str | None, day: str, category_id: str, note_id: str) -> None:
        """Delete a single note (no-op if it does not exist)."""
        uid = require_user(uid)
        self._execute(
            "DELETE FROM notes WHERE uid = ? AND day = ? AND category_id = ? AND note_id = ?",
            (uid, day, category_id, note_id),
        )

    def close(self) -> None:
        """Close the database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    @staticmethod
    def _row_to_category(row: sqlite3.Row) -> Category:
        """Convert a database row to a Category model."""
        return Category(
            id=row["category_id"],
            name=row["name"],
            icon=row["icon"],
            note_count=row["note_count"],
            created_at=row["created_at"],
        )

    @staticmethod
    def _row_to_note(row: sqlite3.Row) -> Note:
        """Convert a database row to a Note model."""
        return Note(
            id=row["note_id"],
            text=row["text"],
            image_url=row["image_url"],
            voice_url=row["voice_url"],
            is_favorite=bool(row["is_favorite"]),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
