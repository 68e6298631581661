"""
app/mappers/field_similarity.py

Similarity scoring between source column names and target fields.

Scores live on a 0.0-1.0 scale everywhere in the import flow.
"""

from __future__ import annotations

import re
from difflib import SequenceMatcher

from app.mappers.field_normalizer import normalize_field_name

EXACT_MATCH_SCORE = 1.0
PARTIAL_MATCH_CEILING = 0.9

# Minimum score for a target to be listed as an alternative suggestion.
SUGGESTION_THRESHOLD = 0.5
SUGGESTION_LIMIT = 3

# Minimum score for the builder to claim a target on its own.
AUTO_MAP_THRESHOLD = 0.7

# Minimum edit-distance ratio for the typo-tolerant path.
FUZZY_MATCH_THRESHOLD = 0.6

COMMON_FIELD_PREFIXES: tuple[str, ...] = ("field_", "custom_", "meta_", "data_", "user_", "sys_")

_ASCII_FOLD = str.maketrans({"å": "a", "ä": "a", "ö": "o"})
_NON_ALNUM = re.compile(r"[^a-z0-9]")


def score_normalized(normalized_a: str, normalized_b: str) -> float:
    """
    Score two already-normalized names.
    """

    if not normalized_a or not normalized_b:
        return 0.0
    if normalized_a == normalized_b:
        return EXACT_MATCH_SCORE
    if normalized_a in normalized_b or normalized_b in normalized_a:
        shorter, longer = sorted((len(normalized_a), len(normalized_b)))
        return shorter / longer * PARTIAL_MATCH_CEILING
    return 0.0


def similarity(a: str, b: str) -> float:
    """
    Score how well two field names match after normalization.

    Equal forms score `EXACT_MATCH_SCORE`; when one contains the other the
    length ratio is scaled by `PARTIAL_MATCH_CEILING`; anything else is 0.
    """

    return score_normalized(normalize_field_name(a), normalize_field_name(b))


def simplify_field_name(name: str) -> str:
    """
    Lower-case, drop a common prefix such as `field_`, fold å/ä/ö and keep
    only ASCII letters and digits.
    """

    text = str(name or "").strip().lower()
    for prefix in COMMON_FIELD_PREFIXES:
        if text.startswith(prefix):
            text = text[len(prefix) :]
            break
    return _NON_ALNUM.sub("", text.translate(_ASCII_FOLD))


def fuzzy_similarity(a: str, b: str) -> float:
    """
    Typo-tolerant score of two raw field names.

    Compares the simplified spellings with `SequenceMatcher`, so "Emial" still
    lands close to "email". Only trust it above `FUZZY_MATCH_THRESHOLD`.
    """

    simple_a = simplify_field_name(a)
    simple_b = simplify_field_name(b)
    if not simple_a or not simple_b:
        return 0.0
    if simple_a == simple_b:
        return EXACT_MATCH_SCORE
    return SequenceMatcher(None, simple_a, simple_b).ratio()
