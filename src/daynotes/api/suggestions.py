"""AI note idea suggestion endpoint."""

import asyncio
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from daynotes.api.dependencies import get_current_user, get_suggestion_service
from daynotes.models import SuggestionResponse, SuggestNoteIdeasInput, User
from daynotes.suggestions.engine import SuggestionRequest, SuggestionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["suggestions"])


@router.post("/suggestions", response_model=SuggestionResponse)
async def suggest_note_ideas(
    body: SuggestNoteIdeasInput,
    _user: Annotated[User, Depends(get_current_user)],
    service: Annotated[SuggestionService, Depends(get_suggestion_service)],
) -> SuggestionResponse:
    """Ask the model for note ideas for a category.

    Returns 502 with the error message when the model fails or answers with
    output that does not match the schema.
    """
    # Model call is blocking I/O, run in thread
    result = await asyncio.to_thread(SuggestionRequest().run, service, body)
    if result.error is not None:
        raise HTTPException(status_code=502, detail=result.error)
    return result
