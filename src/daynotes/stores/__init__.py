"""Storage modules for notes, categories, and user accounts."""

from daynotes.stores.notes import NoteStore
from daynotes.stores.users import UserStore

__all__ = ["NoteStore", "UserStore"]
