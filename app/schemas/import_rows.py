"""
app/schemas/import_rows.py

Per-row validation models for transformed import payloads.

Payloads come out of the row transformer with canonical keys; these models
check them right before persistence and produce the "Valideringsfel" text
shown in import summaries.
"""

from __future__ import annotations

import re
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MESSAGE_INVALID_EMAIL = "Ogiltig email-adress"
_PYDANTIC_VALUE_ERROR_PREFIX = "Value error, "


def _optional_text(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class CustomerImportRow(BaseModel):
    model_config = ConfigDict(extra="allow")

    email: str
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    phoneNumber: Optional[str] = None
    address: Optional[str] = None
    postalCode: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    dateOfBirth: Optional[str] = None
    newsletter: Optional[bool] = None
    loyal: Optional[bool] = None
    dynamicFields: Optional[dict[str, Any]] = None

    @field_validator(
        "firstName",
        "lastName",
        "phoneNumber",
        "address",
        "postalCode",
        "city",
        "country",
        "dateOfBirth",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        return _optional_text(value)

    @field_validator("email", mode="before")
    @classmethod
    def _check_email(cls, value: Any) -> str:
        text = "" if value is None else str(value).strip()
        if not EMAIL_PATTERN.match(text):
            raise ValueError(MESSAGE_INVALID_EMAIL)
        return text


class TicketImportRow(BaseModel):
    model_config = ConfigDict(extra="allow")

    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    dueDate: Optional[str] = None
    customerEmail: Optional[str] = None
    customerId: Optional[int] = None
    externalCustomerId: Optional[int] = None
    ticketTypeId: Optional[int] = None
    ticketTypeName: Optional[str] = None
    dynamicFields: dict[str, Any] = Field(default_factory=dict)

    @field_validator("title", "description", "status", "dueDate", "ticketTypeName", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        return _optional_text(value)

    @field_validator("customerEmail", mode="before")
    @classmethod
    def _check_customer_email(cls, value: Any) -> Optional[str]:
        text = _optional_text(value)
        if text is None:
            return None
        if not EMAIL_PATTERN.match(str(text)):
            raise ValueError(MESSAGE_INVALID_EMAIL)
        return str(text)


def format_validation_error(exc: ValidationError) -> str:
    """
    Render pydantic errors as `Valideringsfel - field: message, ...`.
    """

    parts: list[str] = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        message = str(error.get("msg", ""))
        if message.startswith(_PYDANTIC_VALUE_ERROR_PREFIX):
            message = message[len(_PYDANTIC_VALUE_ERROR_PREFIX) :]
        parts.append(f"{location}: {message}" if location else message)
    return f"Valideringsfel - {', '.join(parts)}"
