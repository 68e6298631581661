"""
app/services/export_service.py

Flatten customers and tickets into rectangular export rows and render them
as CSV, Excel or JSON.

Entities arrive as plain dicts (see `app/repositories/export_repository.py`)
so the flattening stays independent of the ORM.
"""

from __future__ import annotations

import csv
import io
import json
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from functools import lru_cache
from typing import Any, Iterable, Mapping, Sequence

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter
from sqlalchemy.orm import Session

from app.config import ExportSettings, get_export_settings
from app.domain.import_export import CUSTOMERS, TICKETS
from app.mappers.date_normalizer import date_part
from app.repositories.export_repository import ExportRepository

logger = logging.getLogger(__name__)

EXPORT_ALL = "all"
VALID_EXPORT_TYPES: frozenset[str] = frozenset({CUSTOMERS, TICKETS, EXPORT_ALL})
VALID_EXPORT_FORMATS: frozenset[str] = frozenset({"json", "csv", "excel"})

CUSTOMER_DYNAMIC_PREFIX = "custom_"
TICKET_DYNAMIC_PREFIX = "field_"
CUSTOM_STATUS_SUFFIX = " (Anpassad)"

SHEET_TITLES: dict[str, str] = {CUSTOMERS: "Kunder", TICKETS: "Ärenden"}
HEADER_FILL_COLOR = "D9D9D9"

MEDIA_TYPES: dict[str, str] = {
    "json": "application/json",
    "csv": "text/csv; charset=utf-8",
    "excel": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}
FILE_EXTENSIONS: dict[str, str] = {"json": "json", "csv": "csv", "excel": "xlsx"}

MESSAGE_INVALID_TYPE = 'Ogiltig exporttyp. Måste vara "customers", "tickets" eller "all".'
MESSAGE_INVALID_FORMAT = 'Ogiltigt format. Måste vara "json", "csv" eller "excel".'
MESSAGE_CSV_SINGLE_TYPE = 'CSV-export kräver exporttypen "customers" eller "tickets".'


# ---------------------------------------------------------------------------
# Exceptions / results
# ---------------------------------------------------------------------------


class ExportFormatError(ValueError):
    """
    Raised for unsupported export type/format combinations.
    """

    def __init__(self, message: str, *, parameter: str) -> None:
        super().__init__(message)
        self.parameter = parameter

    def to_dict(self) -> dict[str, Any]:
        return {"message": str(self), "parameter": self.parameter}


@dataclass(frozen=True)
class ExportResult:
    rows: list[dict[str, Any]] = field(default_factory=list)
    fields: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class RenderedExport:
    content: bytes
    media_type: str
    filename: str


# ---------------------------------------------------------------------------
# Flattening
# ---------------------------------------------------------------------------


def _text(value: Any) -> Any:
    return "" if value is None else value


def _dynamic_fields(entity: Mapping[str, Any]) -> Mapping[str, Any]:
    value = entity.get("dynamicFields")
    return value if isinstance(value, Mapping) else {}


def _collect_fields(rows: Sequence[Mapping[str, Any]]) -> list[str]:
    """Union of keys across rows, preserving first-seen order."""
    seen: dict[str, None] = {}
    for row in rows:
        for key in row:
            seen.setdefault(key, None)
    return list(seen)


def _rectangular(rows: list[dict[str, Any]]) -> ExportResult:
    fields = _collect_fields(rows)
    return ExportResult(
        rows=[{name: row.get(name, "") for name in fields} for row in rows],
        fields=fields,
    )


def _flatten_customer(customer: Mapping[str, Any], include_relations: bool) -> dict[str, Any]:
    row: dict[str, Any] = {
        "id": customer.get("id"),
        "firstName": _text(customer.get("firstName")),
        "lastName": _text(customer.get("lastName")),
        "email": _text(customer.get("email")),
        "phoneNumber": _text(customer.get("phoneNumber")),
        "address": _text(customer.get("address")),
        "postalCode": _text(customer.get("postalCode")),
        "city": _text(customer.get("city")),
        "country": _text(customer.get("country")),
        "dateOfBirth": date_part(customer.get("dateOfBirth")),
        "newsletter": bool(customer.get("newsletter") or False),
        "loyal": bool(customer.get("loyal") or False),
    }
    for key, value in _dynamic_fields(customer).items():
        row[f"{CUSTOMER_DYNAMIC_PREFIX}{key}"] = value

    if include_relations:
        tickets = customer.get("tickets")
        if isinstance(tickets, Sequence):
            row["ticketCount"] = len(tickets)
        else:
            row["ticketCount"] = int(customer.get("ticketCount") or 0)
    return row


def _latest_message_date(messages: Iterable[Mapping[str, Any]]) -> str:
    days = [date_part(message.get("createdAt")) for message in messages]
    days = [day for day in days if day]
    return max(days) if days else ""


def _flatten_ticket(
    ticket: Mapping[str, Any],
    dynamic_keys: Sequence[str],
    include_relations: bool,
) -> dict[str, Any]:
    customer = ticket.get("customer") or {}
    ticket_type = ticket.get("ticketType") or {}
    custom_status = ticket.get("customStatus")

    if custom_status:
        status = f"{custom_status.get('name', '')}{CUSTOM_STATUS_SUFFIX}"
    else:
        status = _text(ticket.get("status"))

    customer_name = ""
    if customer:
        customer_name = f"{customer.get('firstName') or ''} {customer.get('lastName') or ''}".strip()

    row: dict[str, Any] = {
        "id": ticket.get("id"),
        "title": _text(ticket.get("title")),
        "description": _text(ticket.get("description")),
        "status": status,
        "createdAt": date_part(ticket.get("createdAt")),
        "updatedAt": date_part(ticket.get("updatedAt")),
        "dueDate": date_part(ticket.get("dueDate")),
        "customerId": ticket.get("customerId"),
        "customerEmail": _text(customer.get("email")),
        "customerName": customer_name,
        "ticketTypeId": ticket.get("ticketTypeId"),
        "ticketTypeName": _text(ticket_type.get("name")),
    }
    if custom_status:
        row["customStatusName"] = custom_status.get("name")
        row["customStatusColor"] = custom_status.get("color")

    values = _dynamic_fields(ticket)
    for key in dynamic_keys:
        value = values.get(key)
        row[f"{TICKET_DYNAMIC_PREFIX}{key}"] = "" if value is None else value

    if include_relations:
        messages = ticket.get("messages") or []
        row["messageCount"] = len(messages)
        row["lastMessageDate"] = _latest_message_date(messages)
        assigned = ticket.get("assignedUser") or {}
        row["assignedUserEmail"] = _text(assigned.get("email"))
    return row


def ticket_dynamic_keys(
    tickets: Iterable[Mapping[str, Any]],
    ticket_field_names: Iterable[str] = (),
) -> list[str]:
    """
    Dynamic-field keys found on any ticket, then every defined field name.
    """

    keys: dict[str, None] = {}
    for ticket in tickets:
        for key in _dynamic_fields(ticket):
            keys.setdefault(str(key), None)
    for name in ticket_field_names:
        if name:
            keys.setdefault(name, None)
    return list(keys)


def flatten_for_export(
    entities: Sequence[Mapping[str, Any]],
    entity_kind: str,
    include_relations: bool,
    *,
    ticket_field_names: Iterable[str] = (),
) -> ExportResult:
    """
    Flatten entities into rows that all share the same columns.

    Tickets get one `field_<name>` column per dynamic key seen on any ticket
    or defined on any ticket type; customers get `custom_<key>` columns.
    Missing values are exported as an empty string.
    """

    if entity_kind == CUSTOMERS:
        rows = [_flatten_customer(customer, include_relations) for customer in entities]
    elif entity_kind == TICKETS:
        keys = ticket_dynamic_keys(entities, ticket_field_names)
        logger.debug("Exporting ticket dynamic fields: %s", keys)
        rows = [_flatten_ticket(ticket, keys, include_relations) for ticket in entities]
    else:
        raise ExportFormatError(MESSAGE_INVALID_TYPE, parameter="type")
    return _rectangular(rows)


# ---------------------------------------------------------------------------
# Writers
# ---------------------------------------------------------------------------


def _cell_value(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, default=str)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def to_csv_bytes(result: ExportResult) -> bytes:
    buffer = io.StringIO()
    writer = csv.DictWriter(
        buffer,
        fieldnames=result.fields,
        restval="",
        extrasaction="ignore",
        lineterminator="\r\n",
    )
    writer.writeheader()
    for row in result.rows:
        writer.writerow({key: _cell_value(value) for key, value in row.items()})
    return buffer.getvalue().encode("utf-8")


def to_excel_bytes(sheets: Mapping[str, ExportResult]) -> bytes:
    """
    Write one worksheet per entity kind with a bold, grey header row.
    """

    workbook = Workbook()
    workbook.remove(workbook.active)
    header_font = Font(bold=True)
    header_fill = PatternFill("solid", fgColor=HEADER_FILL_COLOR)

    for entity_kind, result in sheets.items():
        sheet = workbook.create_sheet(title=SHEET_TITLES.get(entity_kind, entity_kind)[:31])
        sheet.append(result.fields)
        for cell in sheet[1]:
            cell.font = header_font
            cell.fill = header_fill
        for row in result.rows:
            sheet.append([_cell_value(row.get(name, "")) for name in result.fields])
        sheet.freeze_panes = "A2"
        for index, name in enumerate(result.fields, start=1):
            sheet.column_dimensions[get_column_letter(index)].width = max(12, min(50, len(name) + 4))

    if not workbook.worksheets:
        workbook.create_sheet(title="Export")

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def to_json_bytes(payload: Any) -> bytes:
    return json.dumps(payload, indent=2, ensure_ascii=False, default=str).encode("utf-8")


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


def validate_export_request(export_type: str, export_format: str) -> None:
    if export_type not in VALID_EXPORT_TYPES:
        raise ExportFormatError(MESSAGE_INVALID_TYPE, parameter="type")
    if export_format not in VALID_EXPORT_FORMATS:
        raise ExportFormatError(MESSAGE_INVALID_FORMAT, parameter="format")
    if export_format == "csv" and export_type == EXPORT_ALL:
        raise ExportFormatError(MESSAGE_CSV_SINGLE_TYPE, parameter="format")


class ExportService:
    """
    Loads a store's customers and tickets and renders them for download.
    """

    def __init__(self, *, settings: ExportSettings) -> None:
        self._settings = settings

    def resolve_limit(self, raw_limit: Any) -> int:
        """
        Parse a requested row limit, falling back to the default and capping it.
        """

        try:
            limit = int(str(raw_limit).strip())
        except (TypeError, ValueError):
            limit = 0
        if limit <= 0:
            limit = self._settings.default_limit
        return min(limit, self._settings.max_limit)

    def collect(
        self,
        *,
        db: Session,
        store_id: int,
        export_type: str,
        include_relations: bool,
        limit: int,
    ) -> dict[str, ExportResult]:
        repository = ExportRepository(db)
        results: dict[str, ExportResult] = {}

        if export_type in (CUSTOMERS, EXPORT_ALL):
            customers = repository.list_customers(
                store_id=store_id,
                limit=limit,
                include_relations=include_relations,
            )
            results[CUSTOMERS] = flatten_for_export(customers, CUSTOMERS, include_relations)

        if export_type in (TICKETS, EXPORT_ALL):
            tickets = repository.list_tickets(
                store_id=store_id,
                limit=limit,
                include_relations=include_relations,
            )
            results[TICKETS] = flatten_for_export(
                tickets,
                TICKETS,
                include_relations,
                ticket_field_names=repository.ticket_field_names(store_id=store_id),
            )

        logger.info(
            "Collected export store_id=%s type=%s rows=%s",
            store_id,
            export_type,
            {kind: len(result.rows) for kind, result in results.items()},
        )
        return results

    def render(
        self,
        results: Mapping[str, ExportResult],
        *,
        export_type: str,
        export_format: str,
        filename_stem: str,
    ) -> RenderedExport:
        validate_export_request(export_type, export_format)

        if export_format == "csv":
            content = to_csv_bytes(results[export_type])
        elif export_format == "excel":
            content = to_excel_bytes(results)
        elif export_type == EXPORT_ALL:
            content = to_json_bytes({kind: result.rows for kind, result in results.items()})
        else:
            content = to_json_bytes(results[export_type].rows)

        return RenderedExport(
            content=content,
            media_type=MEDIA_TYPES[export_format],
            filename=f"{filename_stem}.{FILE_EXTENSIONS[export_format]}",
        )

    def export(
        self,
        *,
        db: Session,
        store_id: int,
        export_type: str,
        export_format: str,
        include_relations: bool = True,
        limit: Any = None,
    ) -> RenderedExport:
        validate_export_request(export_type, export_format)
        results = self.collect(
            db=db,
            store_id=store_id,
            export_type=export_type,
            include_relations=include_relations,
            limit=self.resolve_limit(limit),
        )
        return self.render(
            results,
            export_type=export_type,
            export_format=export_format,
            filename_stem=f"{export_type}-export-{date.today().isoformat()}",
        )


@lru_cache(maxsize=1)
def get_export_service() -> ExportService:
    return ExportService(settings=get_export_settings())
