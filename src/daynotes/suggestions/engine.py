"""AI note idea suggestions for a category."""

import json
import logging
from dataclasses import dataclass, field

from pydantic import ValidationError

from daynotes.models import (
    Note,
    SuggestNoteIdeasInput,
    SuggestNoteIdeasOutput,
    SuggestionResponse,
    SuggestionStatus,
)
from daynotes.suggestions.llm_client import LLMClient

logger = logging.getLogger(__name__)

IDEA_COUNT = 5

SYSTEM_PROMPT = f"""\
You are a creative assistant helping users come up with note ideas for their categories.

Suggest {IDEA_COUNT} distinct and creative note ideas for the given category. The ideas \
should be short and concise.

Return valid JSON with exactly this shape:
{{"ideas": ["idea 1", "idea 2", ...]}}

Return ONLY valid JSON, no markdown fences or extra text.\
"""


class SuggestionError(Exception):
    """Raised when the model call fails or its output does not match the schema."""


def build_user_prompt(request: SuggestNoteIdeasInput) -> str:
    """Render the prompt for a category and its optional current notes."""
    prompt = f"Category: {request.category}\n"
    if request.current_notes:
        prompt += f"\nCurrent Notes:\n{request.current_notes}\n"
    return prompt


def current_notes_text(notes: list[Note]) -> str:
    """Join note texts into the free-text blob sent with a request."""
    return ", ".join(note.text for note in notes)


class SuggestionService:
    """Suggest note ideas via one schema-checked model call."""

    def __init__(self, llm_client: LLMClient) -> None:
        self.llm_client = llm_client

    def suggest(self, request: SuggestNoteIdeasInput | dict[str, object]) -> SuggestNoteIdeasOutput:
        """Validate the input, ask the model, and validate its answer.

        Raises:
            ValidationError: If the input does not match the input schema.
            SuggestionError: If the model fails or returns malformed output.
        """
        if not isinstance(request, SuggestNoteIdeasInput):
            request = SuggestNoteIdeasInput.model_validate(request)

        try:
            raw = self.llm_client.chat_json(SYSTEM_PROMPT, build_user_prompt(request))
        except json.JSONDecodeError as e:
            raise SuggestionError("Model returned invalid JSON") from e
        except Exception as e:
            logger.error("Suggestion request for %r failed", request.category, exc_info=True)
            raise SuggestionError(f"Failed to get AI suggestions: {e}") from e

        try:
            output = SuggestNoteIdeasOutput.model_validate(raw)
        except ValidationError as e:
            logger.warning("Rejected malformed suggestion output: %s", raw)
            raise SuggestionError("Model returned output without an ideas list") from e

        logger.info("Got %d ideas for %r", len(output.ideas), request.category)
        return output


@dataclass
class SuggestionRequest:
    """One suggestion round trip: idle -> requesting -> success | failed."""

    status: SuggestionStatus = SuggestionStatus.IDLE
    ideas: list[str] = field(default_factory=list)
    error: str | None = None

    def run(
        self, service: SuggestionService, request: SuggestNoteIdeasInput
    ) -> SuggestionResponse:
        """Drive the request through the service and record the outcome."""
        if self.status == SuggestionStatus.REQUESTING:
            raise RuntimeError("Suggestion request already in flight")
        self.status = SuggestionStatus.REQUESTING
        self.ideas = []
        self.error = None
        try:
            output = service.suggest(request)
        except SuggestionError as e:
            self.status = SuggestionStatus.FAILED
            self.error = str(e)
        else:
            self.status = SuggestionStatus.SUCCESS
            self.ideas = output.ideas
        return self.to_response()

    def to_response(self) -> SuggestionResponse:
        return SuggestionResponse(status=self.status, ideas=self.ideas, error=self.error)
