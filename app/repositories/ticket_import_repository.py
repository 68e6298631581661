"""
app/repositories/ticket_import_repository.py

Batch persistence for imported tickets.

Resolves the owning customer and ticket type for each row, turns the status
label into a system or custom status, and checks dynamic field values
against the ticket type's field definitions.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.import_export import (
    BatchOutcome,
    BatchWindow,
    CustomStatus,
    RowError,
    TicketFieldDefinition,
    TicketTypeInfo,
)
from app.mappers.date_normalizer import parse_date, parse_datetime
from app.mappers.row_transformer import coerce_bool
from app.mappers.ticket_status import resolve_status
from app.repositories.errors import RowRejected
from app.schemas.import_rows import TicketImportRow, format_validation_error
from db.models.customer import Customer
from db.models.ticket import Ticket

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Importerat ärende"
MESSAGE_NO_CUSTOMER = "Ingen kund angiven (varken ID, externt ID eller e-post)"
MESSAGE_NO_TICKET_TYPES = (
    "Inga ärendetyper hittades för din butik. Skapa minst en ärendetyp innan du importerar ärenden."
)
UNKNOWN_ERROR_MESSAGE = "Okänt fel"


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def coerce_dynamic_value(definition: TicketFieldDefinition, value: Any) -> Any:
    """
    Convert one dynamic field value to its declared type.

    Raises `RowRejected` when a NUMBER or DATE value cannot be converted.
    """

    if _is_blank(value):
        return value
    if definition.field_type == "NUMBER":
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return value
        text = str(value).strip().replace(",", ".")
        try:
            number = float(text)
        except ValueError:
            raise RowRejected(f"Fältet {definition.name} måste vara ett tal") from None
        return int(number) if number.is_integer() else number
    if definition.field_type in ("DATE", "DUE_DATE"):
        parsed = parse_date(value)
        if parsed is None:
            raise RowRejected(f"Fältet {definition.name} har ett ogiltigt datum")
        return parsed
    if definition.field_type == "CHECKBOX":
        return coerce_bool(value)
    return value if isinstance(value, str) else str(value)


class TicketImportRepository:
    """
    Persists ticket payloads for one store.
    """

    def __init__(
        self,
        session: Session,
        *,
        store_id: int,
        ticket_types: Sequence[TicketTypeInfo],
        custom_status_ids: set[int] | None = None,
        user_id: int | None = None,
    ) -> None:
        if not ticket_types:
            raise ValueError(MESSAGE_NO_TICKET_TYPES)
        self._session = session
        self._store_id = store_id
        self._ticket_types = tuple(ticket_types)
        self._custom_status_ids = custom_status_ids or set()
        self._user_id = user_id

    def persist_batch(self, rows: Sequence[Mapping[str, Any]], window: BatchWindow) -> BatchOutcome:
        success = 0
        errors: list[str] = []

        for offset, payload in enumerate(rows):
            row_number = window.row_number(offset)
            try:
                with self._session.begin_nested():
                    self._persist_row(payload)
                    self._session.flush()
                success += 1
            except RowRejected as exc:
                errors.append(str(RowError(row_number, str(exc))))
            except SQLAlchemyError as exc:
                logger.exception("Database error on ticket row %s", row_number)
                errors.append(str(RowError(row_number, f"Databasfel: {exc.__class__.__name__}")))
            except Exception as exc:  # noqa: BLE001
                logger.exception("Unexpected error on ticket row %s", row_number)
                errors.append(str(RowError(row_number, str(exc) or UNKNOWN_ERROR_MESSAGE)))

        self._session.commit()
        return BatchOutcome(success=success, failed=len(errors), errors=tuple(errors))

    # ------------------------------------------------------------------
    # Row handling
    # ------------------------------------------------------------------

    def _persist_row(self, payload: Mapping[str, Any]) -> None:
        try:
            row = TicketImportRow.model_validate(dict(payload))
        except ValidationError as exc:
            raise RowRejected(format_validation_error(exc)) from exc

        customer = self._resolve_customer(row)
        ticket_type = self._resolve_ticket_type(row)
        dynamic_fields = self._apply_field_definitions(ticket_type, row.dynamicFields)

        due_source = row.dueDate or self._due_date_from_fields(ticket_type, dynamic_fields)
        due_date = parse_datetime(due_source) if due_source else None

        status = resolve_status(row.status, custom_status_ids=self._custom_status_ids)
        ticket = Ticket(
            store_id=self._store_id,
            customer_id=customer.id,
            ticket_type_id=ticket_type.id,
            user_id=self._user_id,
            title=row.title or DEFAULT_TITLE,
            description=row.description or "",
            status="OPEN" if isinstance(status, CustomStatus) else status.value,
            custom_status_id=status.id if isinstance(status, CustomStatus) else None,
            due_date=due_date,
            dynamic_fields=dynamic_fields,
        )
        self._session.add(ticket)

    def _resolve_customer(self, row: TicketImportRow) -> Customer:
        if row.customerId is not None:
            customer = self._find_customer(Customer.id == row.customerId)
            if customer is None:
                raise RowRejected(f"Kunde inte hitta kund med ID {row.customerId}")
            return customer
        if row.externalCustomerId is not None:
            customer = self._find_customer(Customer.external_id == row.externalCustomerId)
            if customer is None:
                raise RowRejected(f"Kunde inte hitta kund med externt ID {row.externalCustomerId}")
            return customer
        if row.customerEmail:
            customer = self._find_customer(Customer.email == row.customerEmail)
            if customer is None:
                raise RowRejected(f"Kunde inte hitta kund med e-post {row.customerEmail}")
            return customer
        raise RowRejected(MESSAGE_NO_CUSTOMER)

    def _find_customer(self, criterion: Any) -> Customer | None:
        stmt = select(Customer).where(Customer.store_id == self._store_id, criterion)
        return self._session.execute(stmt).scalars().first()

    def _resolve_ticket_type(self, row: TicketImportRow) -> TicketTypeInfo:
        if row.ticketTypeId is not None:
            for ticket_type in self._ticket_types:
                if ticket_type.id == row.ticketTypeId:
                    return ticket_type
            raise RowRejected(f"Ärendetyp med ID {row.ticketTypeId} finns inte")
        if row.ticketTypeName:
            wanted = row.ticketTypeName.strip().lower()
            for ticket_type in self._ticket_types:
                if ticket_type.name.strip().lower() == wanted:
                    return ticket_type
            logger.info("Unknown ticket type name %r; using %r", row.ticketTypeName, self._ticket_types[0].name)
        return self._ticket_types[0]

    @staticmethod
    def _apply_field_definitions(ticket_type: TicketTypeInfo, values: Mapping[str, Any]) -> dict[str, Any]:
        dynamic_fields = dict(values)
        for definition in ticket_type.fields:
            value = dynamic_fields.get(definition.name)
            if _is_blank(value):
                if definition.is_required:
                    raise RowRejected(f"Obligatoriskt fält saknas: {definition.name}")
                continue
            dynamic_fields[definition.name] = coerce_dynamic_value(definition, value)
        return dynamic_fields

    @staticmethod
    def _due_date_from_fields(ticket_type: TicketTypeInfo, dynamic_fields: Mapping[str, Any]) -> Any:
        for definition in ticket_type.fields:
            if definition.field_type == "DUE_DATE" and not _is_blank(dynamic_fields.get(definition.name)):
                return dynamic_fields[definition.name]
        return None
