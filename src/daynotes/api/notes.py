"""Note API endpoints, scoped to a category of a day."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response

from daynotes.api.dependencies import get_current_user, get_note_store, valid_day
from daynotes.models import Note, NoteCreate, NoteUpdate, User
from daynotes.stores.notes import NoteStore, NotFoundError

router = APIRouter(prefix="/api/v1/days/{day}/categories/{category_id}", tags=["notes"])

Day = Annotated[str, Depends(valid_day)]
CurrentUser = Annotated[User, Depends(get_current_user)]
Store = Annotated[NoteStore, Depends(get_note_store)]


@router.get("/notes", response_model=list[Note])
async def list_notes(category_id: str, day: Day, user: CurrentUser, store: Store) -> list[Note]:
    """List a category's notes, newest first."""
    return store.get_notes(user.uid, day, category_id)


@router.post("/notes", response_model=Note, status_code=201)
async def create_note(
    category_id: str, body: NoteCreate, day: Day, user: CurrentUser, store: Store
) -> Note:
    """Add a note to a category."""
    try:
        return store.add_note(user.uid, day, category_id, body)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


@router.patch("/notes/{note_id}", response_model=Note)
async def update_note(
    category_id: str,
    note_id: str,
    body: NoteUpdate,
    day: Day,
    user: CurrentUser,
    store: Store,
) -> Note:
    """Edit a note or toggle its favorite flag."""
    try:
        store.update_note(user.uid, day, category_id, note_id, body)
        return store.get_note(user.uid, day, category_id, note_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


@router.delete("/notes/{note_id}", status_code=204)
async def delete_note(
    category_id: str, note_id: str, day: Day, user: CurrentUser, store: Store
) -> Response:
    """Delete a note."""
    store.delete_note(user.uid, day, category_id, note_id)
    return Response(status_code=204)
