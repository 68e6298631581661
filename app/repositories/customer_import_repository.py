"""
app/repositories/customer_import_repository.py

Batch persistence for imported customers.

Each row runs inside its own SAVEPOINT, so a failing row is rolled back on
its own and the rest of the batch still commits.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.import_export import BatchOutcome, BatchWindow, ImportOptions, RowError
from app.mappers.date_normalizer import parse_datetime
from app.repositories.errors import RowRejected
from app.schemas.import_rows import CustomerImportRow, format_validation_error
from db.models.customer import Customer

logger = logging.getLogger(__name__)

EXTERNAL_ID_KEYS: tuple[str, ...] = ("externalId", "external_id", "customer_id", "kundnummer", "externt_id")
REPLACEMENT_CHARACTER = "\ufffd"

MESSAGE_INVALID_ENCODING = "Filens teckenkodning är inte giltig UTF-8"
MESSAGE_DUPLICATE_EMAIL = "En kund med denna e-postadress finns redan"
MESSAGE_INVALID_BIRTH_DATE = "Valideringsfel - dateOfBirth: Ogiltigt datum"
UNKNOWN_ERROR_MESSAGE = "Okänt fel"

# Columns copied from a validated row onto the ORM model.
_CUSTOMER_COLUMNS: dict[str, str] = {
    "firstName": "first_name",
    "lastName": "last_name",
    "phoneNumber": "phone_number",
    "address": "address",
    "postalCode": "postal_code",
    "city": "city",
    "country": "country",
    "newsletter": "newsletter",
    "loyal": "loyal",
    "dynamicFields": "dynamic_fields",
}


def has_valid_encoding(value: Any) -> bool:
    """
    False when any string inside `value` carries the U+FFFD replacement character.
    """

    if isinstance(value, str):
        return REPLACEMENT_CHARACTER not in value
    if isinstance(value, Mapping):
        return all(has_valid_encoding(item) for item in value.values())
    if isinstance(value, (list, tuple)):
        return all(has_valid_encoding(item) for item in value)
    return True


def extract_external_id(payload: Mapping[str, Any]) -> int | None:
    """
    First usable integer among the known external-id keys.

    Looks at top-level keys first, then inside `dynamicFields`.
    """

    dynamic_fields = payload.get("dynamicFields")
    sources: list[Mapping[str, Any]] = [payload]
    if isinstance(dynamic_fields, Mapping):
        sources.append(dynamic_fields)

    for source in sources:
        for key in EXTERNAL_ID_KEYS:
            value = source.get(key)
            if value is None or value == "" or isinstance(value, bool):
                continue
            try:
                number = int(float(str(value).strip()))
            except ValueError:
                continue
            if number:
                return number
    return None


class CustomerImportRepository:
    """
    Persists customer payloads for one store.
    """

    def __init__(self, session: Session, *, store_id: int, options: ImportOptions) -> None:
        self._session = session
        self._store_id = store_id
        self._options = options

    def persist_batch(self, rows: Sequence[Mapping[str, Any]], window: BatchWindow) -> BatchOutcome:
        success = 0
        errors: list[str] = []

        for offset, payload in enumerate(rows):
            row_number = window.row_number(offset)
            try:
                with self._session.begin_nested():
                    self._persist_row(payload, row_number)
                    self._session.flush()
                success += 1
            except RowRejected as exc:
                errors.append(str(RowError(row_number, str(exc))))
            except IntegrityError as exc:
                logger.info("Customer row %s violated a constraint: %s", row_number, exc.orig)
                errors.append(str(RowError(row_number, MESSAGE_DUPLICATE_EMAIL)))
            except SQLAlchemyError as exc:
                logger.exception("Database error on customer row %s", row_number)
                errors.append(str(RowError(row_number, f"Databasfel: {exc.__class__.__name__}")))
            except Exception as exc:  # noqa: BLE001
                logger.exception("Unexpected error on customer row %s", row_number)
                errors.append(str(RowError(row_number, str(exc) or UNKNOWN_ERROR_MESSAGE)))

        self._session.commit()
        return BatchOutcome(success=success, failed=len(errors), errors=tuple(errors))

    def _persist_row(self, payload: Mapping[str, Any], row_number: int) -> None:
        if not has_valid_encoding(payload):
            raise RowRejected(MESSAGE_INVALID_ENCODING)

        try:
            row = CustomerImportRow.model_validate(dict(payload))
        except ValidationError as exc:
            raise RowRejected(format_validation_error(exc)) from exc

        date_of_birth = None
        if row.dateOfBirth:
            date_of_birth = parse_datetime(row.dateOfBirth)
            if date_of_birth is None:
                raise RowRejected(MESSAGE_INVALID_BIRTH_DATE)

        external_id = extract_external_id(payload)
        values = row.model_dump(include=set(_CUSTOMER_COLUMNS), exclude_none=True)

        existing = self._find_by_email(row.email)
        if existing is not None:
            self._handle_existing(existing, values, date_of_birth, external_id, MESSAGE_DUPLICATE_EMAIL)
            return

        if external_id is not None:
            existing = self._find_by_external_id(external_id)
            if existing is not None:
                values["email"] = row.email
                self._handle_existing(
                    existing,
                    values,
                    date_of_birth,
                    None,
                    f"En kund med externt ID {external_id} finns redan",
                )
                return

        customer = Customer(
            store_id=self._store_id,
            email=row.email,
            newsletter=False,
            loyal=False,
            dynamic_fields={},
        )
        self._merge(customer, values, date_of_birth, external_id)
        self._session.add(customer)
        logger.debug("Row %s: creating customer %s", row_number, row.email)

    def _handle_existing(
        self,
        customer: Customer,
        values: Mapping[str, Any],
        date_of_birth: Any,
        external_id: int | None,
        duplicate_message: str,
    ) -> None:
        if self._options.update_existing:
            self._merge(customer, values, date_of_birth, external_id)
            return
        if self._options.skip_existing:
            return
        raise RowRejected(duplicate_message)

    @staticmethod
    def _merge(
        customer: Customer,
        values: Mapping[str, Any],
        date_of_birth: Any,
        external_id: int | None,
    ) -> None:
        """
        Overwrite only with values present in the row; keep an existing external id.
        """

        if "email" in values:
            customer.email = values["email"]
        for key, attribute in _CUSTOMER_COLUMNS.items():
            if key in values:
                setattr(customer, attribute, values[key])
        if date_of_birth is not None:
            customer.date_of_birth = date_of_birth
        if customer.external_id is None and external_id is not None:
            customer.external_id = external_id

    def _find_by_email(self, email: str) -> Customer | None:
        stmt = select(Customer).where(
            Customer.store_id == self._store_id,
            Customer.email == email,
        )
        return self._session.execute(stmt).scalars().first()

    def _find_by_external_id(self, external_id: int) -> Customer | None:
        stmt = select(Customer).where(
            Customer.store_id == self._store_id,
            Customer.external_id == external_id,
        )
        return self._session.execute(stmt).scalars().first()
