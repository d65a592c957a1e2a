"""Server-rendered pages: login/signup, day view, and category notes."""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError

from daynotes.api.dependencies import (
    get_auth_gate,
    get_identity_provider,
    get_note_store,
    get_suggestion_service,
)
from daynotes.auth import (
    SESSION_COOKIE,
    AuthError,
    AuthGate,
    AuthState,
    GateAction,
    GateDecision,
    IdentityProvider,
)
from daynotes.dates import format_date, is_valid_date_string, next_day, previous_day, today_string
from daynotes.models import (
    CategoryCreate,
    CategoryUpdate,
    Credentials,
    Note,
    NoteCreate,
    NoteUpdate,
    SuggestNoteIdeasInput,
    SuggestionStatus,
)
from daynotes.search import filter_categories
from daynotes.stores.notes import NoteStore, NotFoundError
from daynotes.suggestions.engine import SuggestionRequest, SuggestionService, current_notes_text

logger = logging.getLogger(__name__)

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))

UI_SESSION_COOKIE = "daynotes_ui"

# Symbol names and emojis offered by the icon picker
ICON_NAMES = [
    "Home", "ShoppingCart", "Film", "DollarSign", "Receipt", "BookOpen", "Briefcase",
    "Utensils", "Plane", "Gift", "Heart", "Star", "Music", "ImageIcon", "Mic", "MapPin",
    "CalendarDays", "Edit3",
]
DEFAULT_EMOJIS = [
    "😀", "🎉", "💡", "💰", "✈️", "🍽️", "🏠", "💻", "❤️", "⭐", "✏️", "🛍️", "🎬", "🧾", "🍔",
]


class GateInterrupt(Exception):
    """Raised by the page gate when a page must not render for this session."""

    def __init__(self, decision: GateDecision) -> None:
        super().__init__(decision.action)
        self.decision = decision


def page_gate(
    request: Request, gate: Annotated[AuthGate, Depends(get_auth_gate)]
) -> AuthState:
    """Resolve the session and apply the gate's redirect rules."""
    state = gate.resolve(request.cookies.get(SESSION_COOKIE))
    decision = gate.decide(request.url.path, state)
    if decision.action != GateAction.ALLOW:
        raise GateInterrupt(decision)
    return state


async def gate_interrupt_handler(request: Request, exc: GateInterrupt) -> Response:
    """Turn a gate decision into a redirect or a loading placeholder."""
    if exc.decision.action == GateAction.REDIRECT and exc.decision.location:
        return RedirectResponse(exc.decision.location, status_code=303)
    response = templates.TemplateResponse(request, "loading.html", {}, status_code=503)
    response.headers["Refresh"] = "1"
    return response


router = APIRouter(tags=["pages"], dependencies=[Depends(page_gate)])

PageState = Annotated[AuthState, Depends(page_gate)]
Store = Annotated[NoteStore, Depends(get_note_store)]
Provider = Annotated[IdentityProvider, Depends(get_identity_provider)]


# --- Toasts ---

FLASH_KEY = "flash"


def flash(
    request: Request, title: str, description: str = "", variant: str = "default"
) -> None:
    """Queue a one-shot notification for the next rendered page."""
    request.session[FLASH_KEY] = {"title": title, "description": description, "variant": variant}


def _render(
    request: Request,
    name: str,
    context: dict[str, Any],
    status_code: int = 200,
    toast: dict[str, str] | None = None,
) -> HTMLResponse:
    """Render a template, consuming any queued toast."""
    queued = request.session.pop(FLASH_KEY, None)
    context = {"toast": toast or queued, **context}
    return templates.TemplateResponse(request, name, context, status_code=status_code)


def _redirect(
    request: Request,
    url: str,
    title: str | None = None,
    description: str = "",
    variant: str = "default",
) -> RedirectResponse:
    if title:
        flash(request, title, description, variant)
    return RedirectResponse(url, status_code=303)


def _error(request: Request, url: str, description: str) -> RedirectResponse:
    return _redirect(request, url, "Error", description, variant="destructive")


def _validation_message(error: ValidationError) -> str:
    first = error.errors()[0]
    field = ".".join(str(part) for part in first.get("loc", ()))
    return f"{field}: {first.get('msg', 'invalid value')}" if field else first.get("msg", "")


def _uid(state: AuthState) -> str | None:
    return state.user.uid if state.user else None


def _invalid_date(request: Request, state: AuthState) -> HTMLResponse:
    return _render(request, "invalid_date.html", {"user": state.user}, status_code=404)


# --- Auth pages ---


@router.get("/", response_class=HTMLResponse)
async def home(state: PageState) -> Response:
    """Send signed-in users to today, everyone else to login."""
    return RedirectResponse(f"/{today_string()}" if state.user else "/login", status_code=303)


@router.get("/login", response_class=HTMLResponse)
async def login_page(request: Request) -> HTMLResponse:
    """Render the login form."""
    return _render(request, "auth.html", {"mode": "login", "email": ""})


@router.post("/login", response_class=HTMLResponse)
async def login_submit(
    request: Request,
    provider: Provider,
    email: Annotated[str, Form()] = "",
    password: Annotated[str, Form()] = "",
) -> Response:
    """Log in and go to today's page."""
    try:
        creds = Credentials(email=email, password=password)
        session = provider.log_in(creds.email, creds.password)
    except ValidationError as e:
        return _render(request, "auth.html", {"mode": "login", "email": email,
                       "error": _validation_message(e)}, status_code=400)
    except AuthError as e:
        return _render(request, "auth.html", {"mode": "login", "email": email,
                       "error": str(e)}, status_code=400)
    response = _redirect(request, f"/{today_string()}")
    response.set_cookie(SESSION_COOKIE, session.token, httponly=True, samesite="lax")
    return response


@router.get("/signup", response_class=HTMLResponse)
async def signup_page(request: Request) -> HTMLResponse:
    """Render the signup form."""
    return _render(request, "auth.html", {"mode": "signup", "email": ""})


@router.post("/signup", response_class=HTMLResponse)
async def signup_submit(
    request: Request,
    provider: Provider,
    email: Annotated[str, Form()] = "",
    password: Annotated[str, Form()] = "",
) -> Response:
    """Create an account and go to today's page."""
    try:
        creds = Credentials(email=email, password=password)
        session = provider.sign_up(creds.email, creds.password)
    except ValidationError as e:
        return _render(request, "auth.html", {"mode": "signup", "email": email,
                       "error": _validation_message(e)}, status_code=400)
    except AuthError as e:
        return _render(request, "auth.html", {"mode": "signup", "email": email,
                       "error": str(e)}, status_code=400)
    response = _redirect(request, f"/{today_string()}", "Welcome!", "Your account has been created.")
    response.set_cookie(SESSION_COOKIE, session.token, httponly=True, samesite="lax")
    return response


@router.post("/logout")
async def logout(request: Request, provider: Provider) -> Response:
    """End the session and return to the login page."""
    provider.log_out(request.cookies.get(SESSION_COOKIE))
    response = _redirect(request, "/login")
    response.delete_cookie(SESSION_COOKIE)
    return response


# --- Day page ---


@router.get("/{day}", response_class=HTMLResponse)
async def day_page(
    request: Request, day: str, state: PageState, store: Store, q: str = ""
) -> HTMLResponse:
    """List the day's categories, seeding the starter set on first visit."""
    if not is_valid_date_string(day):
        return _invalid_date(request, state)

    uid = _uid(state)
    toast = None
    categories = []
    try:
        store.add_predefined_categories_if_needed(uid, day)
        categories = store.get_categories(uid, day)
        notes_by_category: dict[str, list[Note]] | None = None
        if q.strip():
            notes_by_category = {c.id: store.get_notes(uid, day, c.id) for c in categories}
        shown = filter_categories(categories, q, notes_by_category)
    except Exception:
        logger.exception("Error fetching page data for %s", day)
        toast = {"title": "Error", "description": "Could not load data for this day.",
                 "variant": "destructive"}
        shown = []

    return _render(
        request,
        "day.html",
        {
            "user": state.user,
            "day": day,
            "heading": format_date(day, with_weekday=True),
            "previous_day": previous_day(day),
            "next_day": next_day(day),
            "categories": shown,
            "has_categories": bool(categories),
            "q": q,
            "icon_names": ICON_NAMES,
            "emojis": DEFAULT_EMOJIS,
        },
        toast=toast,
    )


@router.post("/{day}/categories")
async def add_category(
    request: Request,
    day: str,
    state: PageState,
    store: Store,
    name: Annotated[str, Form()] = "",
    icon: Annotated[str, Form()] = "Home",
) -> Response:
    """Create a category from the add-category form."""
    if not is_valid_date_string(day):
        return _error(request, "/", "Invalid date.")
    try:
        body = CategoryCreate(name=name, icon=icon)
    except ValidationError as e:
        return _error(request, f"/{day}", _validation_message(e))
    try:
        store.add_category(_uid(state), day, body.name, body.icon)
    except Exception:
        logger.exception("Failed to add category")
        return _error(request, f"/{day}", "Could not add category.")
    return _redirect(request, f"/{day}", "Category Added", f'Category "{body.name}" created.')


@router.post("/{day}/categories/{category_id}/edit")
async def edit_category(
    request: Request,
    day: str,
    category_id: str,
    state: PageState,
    store: Store,
    name: Annotated[str, Form()] = "",
    icon: Annotated[str, Form()] = "",
) -> Response:
    """Save a category rename or icon change."""
    try:
        body = CategoryUpdate(name=name, icon=icon)
    except ValidationError:
        return _error(request, f"/{day}", "Category name and icon cannot be empty.")
    try:
        store.update_category(_uid(state), day, category_id, body)
    except Exception:
        logger.exception("Failed to update category %s", category_id)
        return _error(request, f"/{day}", "Could not update category.")
    return _redirect(request, f"/{day}", "Category Updated", "Category details saved.")


@router.post("/{day}/categories/{category_id}/delete")
async def remove_category(
    request: Request, day: str, category_id: str, state: PageState, store: Store
) -> Response:
    """Delete a category and its notes."""
    try:
        category = store.get_category(_uid(state), day, category_id)
        store.delete_category(_uid(state), day, category_id)
    except Exception:
        logger.exception("Failed to delete category %s", category_id)
        return _error(request, f"/{day}", "Could not delete category.")
    return _redirect(
        request, f"/{day}", "Category Deleted", f'Category "{category.name}" and its notes deleted.'
    )


# --- Category page ---


def _category_context(
    state: AuthState, store: NoteStore, day: str, category_id: str
) -> dict[str, Any]:
    uid = _uid(state)
    category = store.get_category(uid, day, category_id)
    return {
        "user": state.user,
        "day": day,
        "heading": format_date(day, with_weekday=True),
        "category": category,
        "notes": store.get_notes(uid, day, category_id),
        "icon_names": ICON_NAMES,
        "emojis": DEFAULT_EMOJIS,
        "ideas": [],
    }


@router.get("/{day}/categories/{category_id}", response_class=HTMLResponse)
async def category_page(
    request: Request, day: str, category_id: str, state: PageState, store: Store
) -> HTMLResponse:
    """Show a category's notes, newest first."""
    if not is_valid_date_string(day):
        return _invalid_date(request, state)
    try:
        context = _category_context(state, store, day, category_id)
    except NotFoundError:
        return _render(request, "not_found.html", {"user": state.user, "day": day},
                       status_code=404)
    return _render(request, "category.html", context)


@router.post("/{day}/categories/{category_id}/notes")
async def add_note(
    request: Request,
    day: str,
    category_id: str,
    state: PageState,
    store: Store,
    text: Annotated[str, Form()] = "",
    image_url: Annotated[str, Form()] = "",
    is_favorite: Annotated[bool, Form()] = False,
) -> Response:
    """Create a note from the add-note form."""
    back = f"/{day}/categories/{category_id}"
    try:
        body = NoteCreate(text=text, image_url=image_url, is_favorite=is_favorite)
    except ValidationError as e:
        return _error(request, back, _validation_message(e))
    try:
        store.add_note(_uid(state), day, category_id, body)
    except Exception:
        logger.exception("Failed to add note to %s", category_id)
        return _error(request, back, "Could not save note.")
    return _redirect(request, back, "Note Added", "Your note has been successfully added.")


@router.post("/{day}/categories/{category_id}/notes/{note_id}/edit")
async def edit_note(
    request: Request,
    day: str,
    category_id: str,
    note_id: str,
    state: PageState,
    store: Store,
    text: Annotated[str, Form()] = "",
    image_url: Annotated[str, Form()] = "",
    is_favorite: Annotated[bool, Form()] = False,
) -> Response:
    """Save an edited note."""
    back = f"/{day}/categories/{category_id}"
    try:
        body = NoteUpdate(text=text, image_url=image_url, is_favorite=is_favorite)
    except ValidationError as e:
        return _error(request, back, _validation_message(e))
    try:
        store.update_note(_uid(state), day, category_id, note_id, body)
    except Exception:
        logger.exception("Failed to update note %s", note_id)
        return _error(request, back, "Could not save note.")
    return _redirect(request, back, "Note Updated", "Your note has been successfully updated.")


@router.post("/{day}/categories/{category_id}/notes/{note_id}/favorite")
async def toggle_favorite(
    request: Request,
    day: str,
    category_id: str,
    note_id: str,
    state: PageState,
    store: Store,
    is_favorite: Annotated[bool, Form()] = False,
) -> Response:
    """Set a note's favorite flag."""
    back = f"/{day}/categories/{category_id}"
    try:
        store.update_note(
            _uid(state), day, category_id, note_id, NoteUpdate(is_favorite=is_favorite)
        )
    except Exception:
        logger.exception("Failed to update favorite for %s", note_id)
        return _error(request, back, "Could not update favorite status.")
    return _redirect(request, back, "Favorite status updated.")


@router.post("/{day}/categories/{category_id}/notes/{note_id}/delete")
async def remove_note(
    request: Request, day: str, category_id: str, note_id: str, state: PageState, store: Store
) -> Response:
    """Delete a note."""
    back = f"/{day}/categories/{category_id}"
    try:
        store.delete_note(_uid(state), day, category_id, note_id)
    except Exception:
        logger.exception("Failed to delete note %s", note_id)
        return _error(request, back, "Could not delete note.")
    return _redirect(request, back, "Note Deleted", "Your note has been successfully deleted.")


@router.post("/{day}/categories/{category_id}/ideas", response_class=HTMLResponse)
async def note_ideas(
    request: Request,
    day: str,
    category_id: str,
    state: PageState,
    store: Store,
    service: Annotated[SuggestionService, Depends(get_suggestion_service)],
) -> Response:
    """Ask the model for note ideas and show them on the category page."""
    back = f"/{day}/categories/{category_id}"
    try:
        context = _category_context(state, store, day, category_id)
    except Exception:
        logger.exception("Failed to load category %s", category_id)
        return _error(request, back, "Could not fetch notes.")

    current = current_notes_text(context["notes"]) or None
    request_input = SuggestNoteIdeasInput(category=context["category"].name, current_notes=current)
    # Model call is blocking I/O, run in thread
    result = await asyncio.to_thread(SuggestionRequest().run, service, request_input)

    if result.status == SuggestionStatus.FAILED:
        return _error(request, back, result.error or "Failed to get AI suggestions.")
    if not result.ideas:
        return _redirect(request, back, "No suggestions", "AI could not generate suggestions at this time.")
    context["ideas"] = result.ideas
    return _render(request, "category.html", context)
