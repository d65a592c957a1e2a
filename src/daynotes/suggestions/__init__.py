"""AI-assisted note idea suggestions."""

from daynotes.suggestions.engine import SuggestionError, SuggestionRequest, SuggestionService

__all__ = ["SuggestionError", "SuggestionRequest", "SuggestionService"]
