"""
app/mappers/ticket_status.py

Ticket status synonyms and resolution to system or custom statuses.
"""

from __future__ import annotations

from typing import Any

from app.domain.import_export import SYSTEM_STATUSES, CustomStatus, SystemStatus, TicketStatusValue

CUSTOM_STATUS_PREFIX = "CUSTOM_"
DEFAULT_STATUS = "OPEN"

STATUS_SYNONYMS: dict[str, str] = {
    "OPEN": "OPEN",
    "OPENED": "OPEN",
    "NEW": "OPEN",
    "NYA": "OPEN",
    "ÖPPEN": "OPEN",
    "ÖPPET": "OPEN",
    "ÖPPNA": "OPEN",
    "IN_PROGRESS": "IN_PROGRESS",
    "IN PROGRESS": "IN_PROGRESS",
    "INPROGRESS": "IN_PROGRESS",
    "IN-PROGRESS": "IN_PROGRESS",
    "ONGOING": "IN_PROGRESS",
    "PÅGÅR": "IN_PROGRESS",
    "PÅGÅENDE": "IN_PROGRESS",
    "RESOLVED": "RESOLVED",
    "LÖST": "RESOLVED",
    "SOLVED": "RESOLVED",
    "CLOSED": "CLOSED",
    "CLOSE": "CLOSED",
    "DONE": "CLOSED",
    "COMPLETED": "CLOSED",
    "FÄRDIG": "CLOSED",
    "KLAR": "CLOSED",
    "AVSLUTAD": "CLOSED",
    "STÄNGD": "CLOSED",
}


def normalize_status(value: Any) -> Any:
    """
    Upper-case and trim a status label and translate known synonyms.

    Unknown labels pass through upper-cased; non-strings are returned as is.
    """

    if not isinstance(value, str):
        return value
    label = value.strip().upper()
    return STATUS_SYNONYMS.get(label, label)


def resolve_status(value: Any, *, custom_status_ids: set[int] | None = None) -> TicketStatusValue:
    """
    Turn a normalized status into a system or custom status.

    `CUSTOM_<id>` selects a custom status when the id is known (or when no
    known ids are given). Anything else unknown falls back to OPEN.
    """

    label = normalize_status(value)
    if isinstance(label, str) and label.startswith(CUSTOM_STATUS_PREFIX):
        raw_id = label[len(CUSTOM_STATUS_PREFIX) :]
        if raw_id.isdigit():
            status_id = int(raw_id)
            if custom_status_ids is None or status_id in custom_status_ids:
                return CustomStatus(id=status_id)
    if label in SYSTEM_STATUSES:
        return SystemStatus(value=label)
    return SystemStatus(value=DEFAULT_STATUS)
