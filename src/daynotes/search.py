"""Per-day search over categories and their notes."""

from collections.abc import Mapping

from daynotes.models import Category, Note


def filter_categories(
    categories: list[Category],
    term: str | None,
    notes_by_category: Mapping[str, list[Note]] | None = None,
) -> list[Category]:
    """Keep categories whose name, or any note text, contains term.

    Matching is case-insensitive. A blank term keeps everything. Note text is
    only searched when notes_by_category is given.
    """
    needle = (term or "").strip().lower()
    if not needle:
        return list(categories)

    matches: list[Category] = []
    for category in categories:
        if needle in category.name.lower():
            matches.append(category)
            continue
        notes = (notes_by_category or {}).get(category.id, [])
        if any(needle in note.text.lower() for note in notes):
            matches.append(category)
    return matches
