"""
app/mappers/row_transformer.py

Turns raw import rows into canonical customer and ticket payloads.

Only mapped columns are read (plus unmapped `field_*` columns on tickets).
Values are coerced per target field; malformed values degrade instead of
failing the row.
"""

from __future__ import annotations

import json
import logging
from datetime import date, datetime
from typing import Any, Callable, Mapping, Sequence

from app.domain.import_export import CUSTOMERS, VALID_ENTITY_KINDS, RawRow, RowResult
from app.mappers.date_normalizer import parse_date, parse_date_generic_first, parse_datetime, to_iso_utc
from app.mappers.field_mapping import DYNAMIC_FIELDS_TARGET
from app.mappers.field_normalizer import DYNAMIC_FIELD_PREFIX
from app.mappers.ticket_status import normalize_status

logger = logging.getLogger(__name__)

CUSTOM_FIELD_PREFIX = "custom_"
TRUTHY_STRINGS: frozenset[str] = frozenset({"true", "yes", "ja", "1", "y"})
BOOLEAN_TARGETS: frozenset[str] = frozenset({"newsletter", "loyal"})
DUE_DATE_KEY_HINTS: tuple[str, ...] = ("date", "datum", "due", "deadline", "förfall", "klar")
RAW_DYNAMIC_VALUE_KEY = "rawValue"

Payload = dict[str, Any]


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------


def coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in TRUTHY_STRINGS
    if isinstance(value, (int, float)):
        return value == 1
    return bool(value)


def coerce_text(value: Any) -> Any:
    """
    Keep strings and numbers, stringify the rest. None means "omit".
    """

    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return value
    if isinstance(value, (datetime, date)):
        parsed = parse_datetime(value)
        return to_iso_utc(parsed) if parsed is not None else str(value)
    return str(value)


def coerce_optional_int(value: Any) -> int | None:
    """
    Numeric id or None. Zero and non-numeric input both become None.
    """

    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value or None
    try:
        number = float(str(value).strip())
    except ValueError:
        return None
    if number != number or not number.is_integer():
        return None
    return int(number) or None


def _is_numeric(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    text = str(value).strip()
    if not text:
        return False
    try:
        float(text)
    except ValueError:
        return False
    return True


def _strip_prefix(target: str, prefix: str) -> str | None:
    if target.lower().startswith(prefix):
        return target[len(prefix) :]
    return None


# ---------------------------------------------------------------------------
# Customers
# ---------------------------------------------------------------------------


def map_customer_row(row: RawRow, mapping: Mapping[str, str]) -> Payload:
    """
    Build a customer payload from one raw row.

    `field_<X>` and `custom_<X>` targets land in `dynamicFields`, which is only
    present when something was put there.
    """

    payload: Payload = {}
    dynamic_fields: dict[str, Any] = {}

    for source_field, target_field in mapping.items():
        if not target_field or source_field not in row:
            continue
        value = row[source_field]

        if target_field in BOOLEAN_TARGETS:
            payload[target_field] = coerce_bool(value)
            continue

        if target_field == "dateOfBirth":
            if value is None or value == "":
                continue
            parsed = parse_date_generic_first(value)
            if parsed is None:
                logger.debug("Keeping unparsed date of birth %r", value)
                payload[target_field] = coerce_text(value)
            else:
                payload[target_field] = parsed
            continue

        if target_field == DYNAMIC_FIELDS_TARGET:
            _merge_dynamic_value(dynamic_fields, value)
            continue

        dynamic_name = _strip_prefix(target_field, DYNAMIC_FIELD_PREFIX)
        if dynamic_name is None:
            dynamic_name = _strip_prefix(target_field, CUSTOM_FIELD_PREFIX)
        coerced = coerce_text(value)
        if dynamic_name:
            if coerced is not None:
                dynamic_fields[dynamic_name] = coerced
            continue

        if coerced is not None:
            payload[target_field] = coerced

    if dynamic_fields:
        payload[DYNAMIC_FIELDS_TARGET] = dynamic_fields
    return payload


# ---------------------------------------------------------------------------
# Tickets
# ---------------------------------------------------------------------------


def _merge_dynamic_value(dynamic_fields: dict[str, Any], value: Any) -> None:
    if isinstance(value, Mapping):
        dynamic_fields.update(value)
        return
    if value is None:
        return
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except ValueError:
            dynamic_fields[RAW_DYNAMIC_VALUE_KEY] = value
            return
        if isinstance(parsed, dict):
            dynamic_fields.update(parsed)
            return
    dynamic_fields[RAW_DYNAMIC_VALUE_KEY] = value


def _backfill_due_date(payload: Payload) -> None:
    dynamic_fields: dict[str, Any] = payload[DYNAMIC_FIELDS_TARGET]
    for key, value in dynamic_fields.items():
        lowered = key.lower()
        if not any(hint in lowered for hint in DUE_DATE_KEY_HINTS):
            continue
        parsed = parse_date(value)
        if parsed is not None:
            payload["dueDate"] = parsed
            return


def map_ticket_row(row: RawRow, mapping: Mapping[str, str]) -> Payload:
    """
    Build a ticket payload from one raw row. `dynamicFields` is always set.
    """

    dynamic_fields: dict[str, Any] = {}
    payload: Payload = {DYNAMIC_FIELDS_TARGET: dynamic_fields}

    for source_field, target_field in mapping.items():
        if not target_field or source_field not in row:
            continue
        value = row[source_field]

        if target_field == "dueDate":
            if value is None or value == "":
                continue
            parsed = parse_date(value)
            if parsed is None:
                logger.info("Dropping unparseable due date %r from column %s", value, source_field)
                continue
            payload["dueDate"] = parsed
            continue

        if target_field == "status":
            status = normalize_status(value)
            if status is not None:
                payload["status"] = status
            continue

        if target_field == "ticketTypeId":
            if value is None or value == "":
                continue
            if _is_numeric(value):
                type_id = coerce_optional_int(value)
                if type_id is not None:
                    payload["ticketTypeId"] = type_id
            else:
                payload["ticketTypeName"] = str(value).strip()
            continue

        if target_field in ("customerId", "externalCustomerId"):
            payload[target_field] = coerce_optional_int(value)
            continue

        if target_field == DYNAMIC_FIELDS_TARGET:
            _merge_dynamic_value(dynamic_fields, value)
            continue

        dynamic_name = _strip_prefix(target_field, DYNAMIC_FIELD_PREFIX)
        if dynamic_name:
            dynamic_fields[dynamic_name] = value
            continue

        coerced = coerce_text(value)
        if coerced is not None:
            payload[target_field] = coerced

    for key, value in row.items():
        if not isinstance(key, str) or key in mapping:
            continue
        dynamic_name = _strip_prefix(key, DYNAMIC_FIELD_PREFIX)
        if dynamic_name and value is not None:
            dynamic_fields[dynamic_name] = value

    if "dueDate" not in payload and dynamic_fields:
        _backfill_due_date(payload)

    return payload


# ---------------------------------------------------------------------------
# Row batches
# ---------------------------------------------------------------------------


def row_mapper_for(entity_kind: str) -> Callable[[RawRow, Mapping[str, str]], Payload]:
    if entity_kind not in VALID_ENTITY_KINDS:
        raise ValueError(f"Unknown entity kind '{entity_kind}'.")
    return map_customer_row if entity_kind == CUSTOMERS else map_ticket_row


def transform_rows(
    rows: Sequence[RawRow],
    mapping: Mapping[str, str],
    entity_kind: str,
    *,
    first_row_number: int = 1,
) -> list[RowResult]:
    """
    Transform every row, isolating unexpected failures to the row they hit.
    """

    mapper = row_mapper_for(entity_kind)
    results: list[RowResult] = []
    for offset, row in enumerate(rows):
        row_number = first_row_number + offset
        try:
            results.append(RowResult.success(row_number, mapper(row, mapping)))
        except Exception as exc:  # noqa: BLE001
            logger.warning("Row %s could not be transformed: %s", row_number, exc)
            results.append(RowResult.failure(row_number, f"Kunde inte tolka raden: {exc}"))
    return results
