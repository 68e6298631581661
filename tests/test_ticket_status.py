from __future__ import annotations

from app.domain.import_export import CustomStatus, SystemStatus
from app.mappers.ticket_status import normalize_status, resolve_status


def test_normalize_translates_synonyms() -> None:
    assert normalize_status(" pågår ") == "IN_PROGRESS"
    assert normalize_status("Klar") == "CLOSED"
    assert normalize_status("löst") == "RESOLVED"
    assert normalize_status("ny") == "NY"


def test_normalize_passes_non_strings_through() -> None:
    assert normalize_status(None) is None
    assert normalize_status(3) == 3


def test_resolve_known_custom_status() -> None:
    assert resolve_status("custom_7", custom_status_ids={7}) == CustomStatus(id=7)


def test_resolve_unknown_custom_status_falls_back_to_open() -> None:
    assert resolve_status("CUSTOM_8", custom_status_ids={7}) == SystemStatus(value="OPEN")


def test_resolve_custom_status_without_known_ids() -> None:
    assert resolve_status("CUSTOM_12") == CustomStatus(id=12)


def test_resolve_system_statuses() -> None:
    assert resolve_status("Avslutad") == SystemStatus(value="CLOSED")
    assert resolve_status("väntar på kund") == SystemStatus(value="OPEN")
    assert resolve_status(None) == SystemStatus(value="OPEN")
