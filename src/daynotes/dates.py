"""Date helpers for the YYYY-MM-DD day keys used in URLs and storage."""

import logging
import re
from datetime import date, timedelta

logger = logging.getLogger(__name__)

_DAY_KEY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

INVALID_DATE = "Invalid Date"


def parse_date(value: str) -> date | None:
    """Parse a YYYY-MM-DD string, returning None if it is not a real date."""
    if not isinstance(value, str) or not _DAY_KEY_RE.match(value):
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def is_valid_date_string(value: str) -> bool:
    """Check that value is a real calendar date written exactly as YYYY-MM-DD.

    ``2024-02-29`` is valid (leap year), ``2024-02-30`` and ``2024-2-1`` are not.
    """
    parsed = parse_date(value)
    return parsed is not None and parsed.isoformat() == value


def format_date(value: date | str, with_weekday: bool = False) -> str:
    """Format a date for display, e.g. "February 29, 2024".

    Returns "Invalid Date" instead of raising for bad input.
    """
    parsed = parse_date(value) if isinstance(value, str) else value
    if parsed is None:
        logger.debug("Cannot format invalid date %r", value)
        return INVALID_DATE
    text = f"{parsed:%B} {parsed.day}, {parsed.year}"
    if with_weekday:
        text = f"{parsed:%A}, {text}"
    return text


def today_string() -> str:
    """Today's local date as YYYY-MM-DD."""
    return date.today().isoformat()


def _require(value: str) -> date:
    parsed = parse_date(value)
    if parsed is None:
        raise ValueError(f"Invalid date string: {value!r}")
    return parsed


def next_day(value: str) -> str | None:
    """Return the day after value (YYYY-MM-DD), or None on the last representable day."""
    current = _require(value)
    if current == date.max:
        return None
    return (current + timedelta(days=1)).isoformat()


def previous_day(value: str) -> str | None:
    """Return the day before value (YYYY-MM-DD), or None on the first representable day."""
    current = _require(value)
    if current == date.min:
        return None
    return (current - timedelta(days=1)).isoformat()
