"""API route modules."""

from daynotes.api.auth import router as auth_router
from daynotes.api.categories import router as categories_router
from daynotes.api.notes import router as notes_router
from daynotes.api.suggestions import router as suggestions_router

__all__ = ["auth_router", "categories_router", "notes_router", "suggestions_router"]
