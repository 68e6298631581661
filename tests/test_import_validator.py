from __future__ import annotations

import pytest

from app.domain.import_export import CUSTOMERS, TICKETS
from app.validators.import_validator import (
    MESSAGE_CUSTOMER_EMAIL_NOT_MAPPED,
    MESSAGE_EMAIL_MISSING,
    MESSAGE_EMAIL_NOT_MAPPED,
    MESSAGE_NO_DATA,
    MESSAGE_NO_MAPPING,
    ImportValidationError,
    ensure_valid_import,
    validate_import,
)


def test_valid_customer_import() -> None:
    outcome = validate_import([{"Epost": "a@example.se"}], {"Epost": "email"}, CUSTOMERS)

    assert outcome.valid
    assert outcome.message is None


@pytest.mark.parametrize("rows", [None, [], "Epost"])
def test_no_rows(rows) -> None:  # noqa: ANN001
    outcome = validate_import(rows, {"Epost": "email"}, CUSTOMERS)

    assert not outcome.valid
    assert outcome.message == MESSAGE_NO_DATA


def test_mapping_with_only_ignored_columns_counts_as_missing() -> None:
    outcome = validate_import([{"Epost": "a@example.se"}], {"Epost": ""}, CUSTOMERS)

    assert outcome.message == MESSAGE_NO_MAPPING


def test_customer_email_must_be_mapped() -> None:
    outcome = validate_import([{"Namn": "Anna"}], {"Namn": "firstName"}, CUSTOMERS)

    assert outcome.message == MESSAGE_EMAIL_NOT_MAPPED


def test_every_customer_row_needs_an_email() -> None:
    rows = [{"Epost": "a@example.se"}, {"Epost": "  "}]

    outcome = validate_import(rows, {"Epost": "email"}, CUSTOMERS)

    assert outcome.message == MESSAGE_EMAIL_MISSING


def test_ticket_import_needs_customer_email_mapping() -> None:
    rows = [{"Titel": "Vallning", "Kund": 4}]

    outcome = validate_import(rows, {"Titel": "title", "Kund": "customerId"}, TICKETS)

    assert outcome.message == MESSAGE_CUSTOMER_EMAIL_NOT_MAPPED


def test_ensure_valid_import_raises_with_message() -> None:
    with pytest.raises(ImportValidationError) as exc_info:
        ensure_valid_import([], {"Epost": "email"}, CUSTOMERS)

    assert exc_info.value.to_dict() == {"message": MESSAGE_NO_DATA, "entity_kind": CUSTOMERS}
