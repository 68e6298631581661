"""
app/mappers/date_normalizer.py

Lenient date parsing for imported helpdesk data.

Accepts ISO strings, numeric day/month/year layouts and Swedish month names
and always emits the same UTC ISO-8601 shape, or None when nothing fits.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime, time, timezone
from typing import Any, Callable

logger = logging.getLogger(__name__)

SWEDISH_MONTHS: tuple[str, ...] = (
    "januari",
    "februari",
    "mars",
    "april",
    "maj",
    "juni",
    "juli",
    "augusti",
    "september",
    "oktober",
    "november",
    "december",
)

# "maj" is already as short as it gets and has no separate abbreviation.
SWEDISH_MONTH_ABBREVIATIONS: tuple[str, ...] = (
    "jan",
    "feb",
    "mar",
    "apr",
    "jun",
    "jul",
    "aug",
    "sep",
    "okt",
    "nov",
    "dec",
)

_MONTH_LOOKUP: dict[str, int] = {
    **{name: index + 1 for index, name in enumerate(SWEDISH_MONTHS)},
    **{
        abbreviation: month
        for abbreviation, month in zip(
            SWEDISH_MONTH_ABBREVIATIONS,
            (1, 2, 3, 4, 6, 7, 8, 9, 10, 11, 12),
        )
    },
}

_YEAR_FIRST = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")
_DOTTED = re.compile(r"^(\d{1,2})\.(\d{1,2})\.(\d{4})$")
_SLASHED = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_ISO_WITH_ZONE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(?:\.(\d{1,6}))?Z$")
_MONTH_NAME = re.compile(r"(\d{1,2})\.?\s+([a-zåäö]+)\.?\s+(\d{4})")
_PART_SEPARATOR = re.compile(r"[/\-.]")


def to_iso_utc(value: datetime) -> str:
    """
    Format a datetime as `YYYY-MM-DDTHH:MM:SS.mmmZ` in UTC.

    Naive datetimes are treated as UTC.
    """

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def _calendar_date(year: int, month: int, day: int) -> datetime | None:
    try:
        return datetime.combine(date(year, month, day), time(), tzinfo=timezone.utc)
    except ValueError:
        return None


def _from_iso(text: str) -> datetime | None:
    candidate = text[:-1] + "+00:00" if text.endswith(("Z", "z")) else text
    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _from_generic(text: str) -> datetime | None:
    """
    ISO text, or the `M/D/YYYY` form a browser date parser also accepts.
    """

    return _from_iso(text) or _from_month_first_slashed(text)


def _from_year_first(text: str) -> datetime | None:
    match = _YEAR_FIRST.match(text)
    if not match:
        return None
    year, month, day = (int(part) for part in match.groups())
    return _calendar_date(year, month, day)


def _from_dotted(text: str) -> datetime | None:
    match = _DOTTED.match(text)
    if not match:
        return None
    day, month, year = (int(part) for part in match.groups())
    return _calendar_date(year, month, day)


def _from_day_first_slashed(text: str) -> datetime | None:
    match = _SLASHED.match(text)
    if not match:
        return None
    day, month, year = (int(part) for part in match.groups())
    return _calendar_date(year, month, day)


def _from_month_first_slashed(text: str) -> datetime | None:
    match = _SLASHED.match(text)
    if not match:
        return None
    month, day, year = (int(part) for part in match.groups())
    return _calendar_date(year, month, day)


def _from_iso_with_zone(text: str) -> datetime | None:
    match = _ISO_WITH_ZONE.match(text)
    if not match:
        return None
    year, month, day, hour, minute, second = (int(part) for part in match.groups()[:6])
    fraction = match.group(7) or "0"
    microsecond = int(fraction.ljust(6, "0")[:6])
    try:
        return datetime(year, month, day, hour, minute, second, microsecond, tzinfo=timezone.utc)
    except ValueError:
        return None


def _from_month_name(text: str) -> datetime | None:
    match = _MONTH_NAME.search(text.lower())
    if not match:
        return None
    month = _MONTH_LOOKUP.get(match.group(2))
    if month is None:
        return None
    return _calendar_date(int(match.group(3)), month, int(match.group(1)))


def _from_three_parts(text: str) -> datetime | None:
    """
    Last resort: year first when the leading part cannot be a day, day first
    when it cannot be a month, month first otherwise.
    """

    parts = [part.strip() for part in _PART_SEPARATOR.split(text)]
    if len(parts) != 3 or not all(part.isdigit() for part in parts):
        return None
    first, second, third = (int(part) for part in parts)
    if first > 31:
        return _calendar_date(first, second, third)
    if first > 12:
        return _calendar_date(third, second, first)
    return _calendar_date(third, first, second)


# `_from_generic` takes every slashed date that is valid month first, so the
# day-first slashed strategy only sees dates such as 13/04/2025.
_STRATEGIES: tuple[Callable[[str], datetime | None], ...] = (
    _from_generic,
    _from_year_first,
    _from_dotted,
    _from_day_first_slashed,
    _from_iso_with_zone,
    _from_month_name,
    _from_three_parts,
)


def parse_datetime(value: Any) -> datetime | None:
    """
    Resolve a loosely formatted value to an aware UTC datetime.
    """

    if value is None:
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime.combine(value, time(), tzinfo=timezone.utc)
    if isinstance(value, bool):
        return None

    text = str(value).strip()
    if not text:
        return None

    for strategy in _STRATEGIES:
        parsed = strategy(text)
        if parsed is not None:
            return parsed

    logger.debug("Could not parse date value %r", text)
    return None


def parse_date(value: Any) -> str | None:
    """
    Parse a date-like value into a canonical UTC ISO string.

    Returns None for empty input and for anything no strategy understands.
    """

    parsed = parse_datetime(value)
    if parsed is None:
        return None
    return to_iso_utc(parsed)


def parse_date_generic_first(value: Any) -> str | None:
    """
    Generic parse followed only by the 3-part heuristic.

    Used for customer birth dates, where ambiguous numeric dates read month
    first.
    """

    if value is None or isinstance(value, (datetime, date)):
        return parse_date(value)
    text = str(value).strip()
    if not text:
        return None
    parsed = _from_generic(text) or _from_three_parts(text)
    if parsed is None:
        logger.debug("Could not parse date value %r", text)
        return None
    return to_iso_utc(parsed)


def date_part(value: Any) -> str:
    """
    Return `YYYY-MM-DD` for a date-like value, or an empty string.
    """

    parsed = parse_datetime(value)
    if parsed is None:
        return ""
    return parsed.astimezone(timezone.utc).date().isoformat()
