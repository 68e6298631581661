"""
app/services/error_categories.py

Keyword grouping of import error strings for summaries.
"""

from __future__ import annotations

from typing import Iterable

ERROR_CATEGORIES: tuple[str, ...] = ("validation", "database", "mapping", "duplicate", "missing", "other")

# First matching category wins, so the more specific groups come first.
_CATEGORY_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("duplicate", ("finns redan", "duplicate", "dubblett", "already exists", "unique")),
    ("missing", ("kunde inte hitta", "saknar", "saknas", "ingen kund", "not found", "missing")),
    ("mapping", ("mappning", "mapping", "mappa")),
    ("database", ("databas", "database", "integrity", "constraint", "sql", "transaction")),
    ("validation", ("ogiltig", "invalid", "valider", "krävs", "required", "format", "tecken")),
)


def categorize_error(message: str) -> str:
    lowered = message.lower()
    for category, keywords in _CATEGORY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return category
    return "other"


def categorize_errors(errors: Iterable[str]) -> dict[str, list[str]]:
    """
    Group error messages by category, keeping every category key.
    """

    grouped: dict[str, list[str]] = {category: [] for category in ERROR_CATEGORIES}
    for message in errors:
        grouped[categorize_error(str(message))].append(str(message))
    return grouped
