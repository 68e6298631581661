"""
app/domain/import_export.py

Domain models shared by the import mapping, transformation, batch and
export flows.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Mapping, Union

EntityKind = Literal["customers", "tickets"]
CUSTOMERS: EntityKind = "customers"
TICKETS: EntityKind = "tickets"
VALID_ENTITY_KINDS: frozenset[str] = frozenset({CUSTOMERS, TICKETS})

FieldType = Literal["TEXT", "NUMBER", "DATE", "DUE_DATE", "CHECKBOX"]
VALID_FIELD_TYPES: frozenset[str] = frozenset({"TEXT", "NUMBER", "DATE", "DUE_DATE", "CHECKBOX"})

SystemStatusName = Literal["OPEN", "IN_PROGRESS", "RESOLVED", "CLOSED"]
SYSTEM_STATUSES: tuple[str, ...] = ("OPEN", "IN_PROGRESS", "RESOLVED", "CLOSED")

RawRow = Mapping[str, Any]
FieldMapping = dict[str, str]


@dataclass(frozen=True)
class TicketFieldDefinition:
    """
    One user-defined field declared on a ticket type.
    """

    name: str
    field_type: FieldType = "TEXT"
    is_required: bool = False


@dataclass(frozen=True)
class TicketTypeInfo:
    """
    Detached snapshot of a ticket type and its field definitions.
    """

    id: int
    name: str
    fields: tuple[TicketFieldDefinition, ...] = ()


@dataclass(frozen=True)
class FieldSuggestion:
    """
    Ranked alternative target for one source column.
    """

    field: str
    score: float


@dataclass(frozen=True)
class ImportOptions:
    """
    Behaviour flags passed to the persistence collaborator with every batch.
    """

    skip_existing: bool = True
    update_existing: bool = False


@dataclass(frozen=True)
class BatchWindow:
    """
    Contiguous slice [start, end) of the transformed rows.

    `row_numbers` holds the 1-based source row of each payload handed to
    persistence, which differs from the slice position once rows that failed
    transformation are left out.
    """

    index: int
    start: int
    end: int
    row_numbers: tuple[int, ...] = ()

    @property
    def size(self) -> int:
        return self.end - self.start

    @property
    def number(self) -> int:
        """1-based batch number used in user-facing messages."""
        return self.index + 1

    def row_number(self, offset: int) -> int:
        """1-based source row of the payload at `offset` within this batch."""
        if offset < len(self.row_numbers):
            return self.row_numbers[offset]
        return self.start + offset + 1


@dataclass(frozen=True)
class BatchOutcome:
    """
    Result reported by the persistence collaborator for one batch.
    """

    success: int = 0
    failed: int = 0
    errors: tuple[str, ...] = ()


@dataclass(frozen=True)
class RowError:
    """
    Transformation failure for one source row.
    """

    row_number: int
    message: str

    def __str__(self) -> str:
        return f"Rad {self.row_number}: {self.message}"


@dataclass(frozen=True)
class RowResult:
    """
    Either a canonical payload or a row error, never both.
    """

    row_number: int
    payload: dict[str, Any] | None = None
    error: RowError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, row_number: int, payload: dict[str, Any]) -> RowResult:
        return cls(row_number=row_number, payload=payload)

    @classmethod
    def failure(cls, row_number: int, message: str) -> RowResult:
        return cls(row_number=row_number, error=RowError(row_number=row_number, message=message))


@dataclass(frozen=True)
class SystemStatus:
    """
    One of the built-in ticket statuses.
    """

    value: SystemStatusName
    kind: Literal["system"] = "system"


@dataclass(frozen=True)
class CustomStatus:
    """
    Reference to a store-defined custom status row.
    """

    id: int
    kind: Literal["custom"] = "custom"


TicketStatusValue = Union[SystemStatus, CustomStatus]


@dataclass
class ImportResult:
    """
    Running totals for one import. Counters only ever grow.
    """

    total: int = 0
    success: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)

    def add_success(self, count: int = 1) -> None:
        self.success += max(0, count)

    def add_failure(self, message: str | None = None, *, count: int = 1) -> None:
        self.failed += max(0, count)
        if message:
            self.errors.append(message)

    def add_errors(self, messages: tuple[str, ...] | list[str]) -> None:
        self.errors.extend(str(message) for message in messages)

    def snapshot(self) -> ImportSummary:
        return ImportSummary(
            total=self.total,
            success=self.success,
            failed=self.failed,
            errors=tuple(self.errors),
        )


@dataclass(frozen=True)
class ImportSummary:
    """
    Immutable end-of-run import summary returned to callers.
    """

    total: int
    success: int
    failed: int
    errors: tuple[str, ...] = ()
    cancelled: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "success": self.success,
            "failed": self.failed,
            "errors": list(self.errors),
            "cancelled": self.cancelled,
        }
