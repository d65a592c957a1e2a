"""Pydantic models for the DayNotes API."""

from enum import StrEnum
from typing import Annotated

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    HttpUrl,
    StringConstraints,
    TypeAdapter,
    ValidationError,
    field_validator,
)
from pydantic.alias_generators import to_camel

CategoryName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)]
IconName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
NoteText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=10000)]

_http_url = TypeAdapter(HttpUrl)


class CamelModel(BaseModel):
    """Base model exposing camelCase JSON while keeping snake_case attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _clean_image_url(value: str | None) -> str | None:
    """Blank means no image; anything else must be an http(s) URL."""
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    try:
        _http_url.validate_python(value)
    except ValidationError as e:
        raise ValueError("image URL must be a valid http(s) URL") from e
    return value


# --- Categories & notes ---


class Category(CamelModel):
    """A named, iconized bucket of notes for one day."""

    id: str
    name: str
    icon: str  # symbol name (e.g. "ShoppingCart") or emoji
    note_count: int | None = None  # derived at read time
    created_at: int  # epoch millis


class Note(CamelModel):
    """A text note belonging to a category."""

    id: str
    text: str
    image_url: str | None = None
    voice_url: str | None = None  # reserved, never produced
    is_favorite: bool = False
    created_at: int  # epoch millis
    updated_at: int  # epoch millis


class CategoryCreate(CamelModel):
    """Request body for creating a category."""

    name: CategoryName
    icon: IconName = "Home"


class CategoryUpdate(CamelModel):
    """Partial update for a category; unset fields are left alone."""

    name: CategoryName | None = None
    icon: IconName | None = None


class NoteCreate(CamelModel):
    """Request body for creating a note."""

    text: NoteText
    image_url: str | None = None
    is_favorite: bool = False

    @field_validator("image_url")
    @classmethod
    def check_image_url(cls, value: str | None) -> str | None:
        return _clean_image_url(value)


class NoteUpdate(CamelModel):
    """Partial update for a note; unset fields are left alone."""

    text: NoteText | None = None
    image_url: str | None = None
    is_favorite: bool | None = None

    @field_validator("image_url")
    @classmethod
    def check_image_url(cls, value: str | None) -> str | None:
        return _clean_image_url(value)


# --- Users & sessions ---


class User(CamelModel):
    """An authenticated user."""

    uid: str
    email: str
    created_at: int


class Credentials(BaseModel):
    """Email/password pair for sign up and log in."""

    email: EmailStr
    password: str = Field(min_length=1, max_length=200)


class SessionResponse(BaseModel):
    """Returned after a successful sign up or log in."""

    user: User
    token: str


# --- Suggestions ---


class SuggestNoteIdeasInput(CamelModel):
    """Input to the note idea prompt."""

    category: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)] = Field(
        description="The category for which to suggest note ideas."
    )
    current_notes: str | None = Field(
        default=None, description="The current notes in the category."
    )


class SuggestNoteIdeasOutput(BaseModel):
    """Validated model output."""

    ideas: list[str] = Field(description="An array of suggested note ideas.")


class SuggestionStatus(StrEnum):
    """States of a suggestion request."""

    IDLE = "idle"
    REQUESTING = "requesting"
    SUCCESS = "success"
    FAILED = "failed"


class SuggestionResponse(BaseModel):
    """Response body for the /suggestions endpoint."""

    status: SuggestionStatus
    ideas: list[str] = []
    error: str | None = None
