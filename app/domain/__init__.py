"""
app/domain package marker.
"""

from app.domain.import_export import (
    CUSTOMERS,
    TICKETS,
    BatchOutcome,
    BatchWindow,
    CustomStatus,
    FieldSuggestion,
    ImportOptions,
    ImportResult,
    ImportSummary,
    RowError,
    RowResult,
    SystemStatus,
    TicketFieldDefinition,
    TicketTypeInfo,
)

__all__ = [
    "CUSTOMERS",
    "TICKETS",
    "BatchOutcome",
    "BatchWindow",
    "CustomStatus",
    "FieldSuggestion",
    "ImportOptions",
    "ImportResult",
    "ImportSummary",
    "RowError",
    "RowResult",
    "SystemStatus",
    "TicketFieldDefinition",
    "TicketTypeInfo",
]
