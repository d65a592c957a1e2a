"""Category API endpoints, scoped to the current user and a day."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response

from daynotes.api.dependencies import get_current_user, get_note_store, valid_day
from daynotes.models import Category, CategoryCreate, CategoryUpdate, User
from daynotes.stores.notes import NoteStore, NotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/days/{day}", tags=["categories"])

Day = Annotated[str, Depends(valid_day)]
CurrentUser = Annotated[User, Depends(get_current_user)]
Store = Annotated[NoteStore, Depends(get_note_store)]


@router.get("/categories", response_model=list[Category])
async def list_categories(day: Day, user: CurrentUser, store: Store) -> list[Category]:
    """List the day's categories, oldest first, with note counts."""
    return store.get_categories(user.uid, day)


@router.post("/categories", response_model=Category, status_code=201)
async def create_category(
    body: CategoryCreate, day: Day, user: CurrentUser, store: Store
) -> Category:
    """Create a category for the day."""
    return store.add_category(user.uid, day, body.name, body.icon)


@router.post("/categories/seed", response_model=list[Category])
async def seed_categories(day: Day, user: CurrentUser, store: Store) -> list[Category]:
    """Add the starter categories if the day has none, then list categories."""
    store.add_predefined_categories_if_needed(user.uid, day)
    return store.get_categories(user.uid, day)


@router.get("/categories/{category_id}", response_model=Category)
async def get_category(
    category_id: str, day: Day, user: CurrentUser, store: Store
) -> Category:
    """Get a single category."""
    try:
        return store.get_category(user.uid, day, category_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


@router.patch("/categories/{category_id}", response_model=Category)
async def update_category(
    category_id: str, body: CategoryUpdate, day: Day, user: CurrentUser, store: Store
) -> Category:
    """Rename a category or change its icon."""
    try:
        store.update_category(user.uid, day, category_id, body)
        return store.get_category(user.uid, day, category_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


@router.delete("/categories/{category_id}", status_code=204)
async def delete_category(
    category_id: str, day: Day, user: CurrentUser, store: Store
) -> Response:
    """Delete a category and all of its notes."""
    store.delete_category(user.uid, day, category_id)
    return Response(status_code=204)
