"""
app/validators/import_validator.py

Pre-flight structural checks for customer and ticket imports.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from app.domain.import_export import CUSTOMERS, TICKETS

MESSAGE_NO_DATA = "Ingen data hittades i filen"
MESSAGE_NO_MAPPING = "Ingen fältmappning har angivits"
MESSAGE_EMAIL_NOT_MAPPED = "E-postfält måste mappas för kundimport"
MESSAGE_EMAIL_MISSING = "Vissa rader saknar e-postvärden, vilket krävs för kunder"
MESSAGE_CUSTOMER_EMAIL_NOT_MAPPED = "Kundens e-post måste mappas för ärendeimport"


@dataclass(frozen=True)
class ValidationOutcome:
    """
    Result of one pre-flight validation.
    """

    valid: bool
    message: str | None = None


class ImportValidationError(ValueError):
    """
    Raised when an import is structurally unusable and no row may run.
    """

    def __init__(self, *, message: str, entity_kind: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.entity_kind = entity_kind

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "entity_kind": self.entity_kind}


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    return not str(value).strip()


def _source_for_target(mapping: Mapping[str, str], target: str) -> str | None:
    for source_field, target_field in mapping.items():
        if target_field == target:
            return source_field
    return None


def validate_import(
    rows: Sequence[Mapping[str, Any]] | None,
    mapping: Mapping[str, str] | None,
    entity_kind: str,
) -> ValidationOutcome:
    """
    Check that an import has data, a mapping and its required link fields.

    Customers need a mapped email column with a value on every row. Tickets
    need `customerEmail` mapped, even though persistence can also resolve a
    customer by internal or external id.
    """

    if not isinstance(rows, Sequence) or isinstance(rows, (str, bytes)) or not rows:
        return ValidationOutcome(valid=False, message=MESSAGE_NO_DATA)

    active_mapping = {source: target for source, target in (mapping or {}).items() if target}
    if not active_mapping:
        return ValidationOutcome(valid=False, message=MESSAGE_NO_MAPPING)

    if entity_kind == CUSTOMERS:
        email_source = _source_for_target(active_mapping, "email")
        if email_source is None:
            return ValidationOutcome(valid=False, message=MESSAGE_EMAIL_NOT_MAPPED)
        if any(_is_blank(row.get(email_source)) for row in rows):
            return ValidationOutcome(valid=False, message=MESSAGE_EMAIL_MISSING)

    if entity_kind == TICKETS:
        # TODO: accept customerId / externalCustomerId once the UI offers them as the customer link.
        if _source_for_target(active_mapping, "customerEmail") is None:
            return ValidationOutcome(valid=False, message=MESSAGE_CUSTOMER_EMAIL_NOT_MAPPED)

    return ValidationOutcome(valid=True)


def ensure_valid_import(
    rows: Sequence[Mapping[str, Any]] | None,
    mapping: Mapping[str, str] | None,
    entity_kind: str,
) -> None:
    """
    Raise `ImportValidationError` when `validate_import` rejects the input.
    """

    outcome = validate_import(rows, mapping, entity_kind)
    if not outcome.valid:
        raise ImportValidationError(message=outcome.message or MESSAGE_NO_DATA, entity_kind=entity_kind)
