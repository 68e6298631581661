"""
app/schemas package marker.
"""

from app.schemas.import_export import (
    FieldSuggestionResponse,
    ImportOptionsRequest,
    ImportPreviewResponse,
    ImportRequest,
    ImportSummaryResponse,
)
from app.schemas.import_rows import CustomerImportRow, TicketImportRow, format_validation_error

__all__ = [
    "CustomerImportRow",
    "FieldSuggestionResponse",
    "ImportOptionsRequest",
    "ImportPreviewResponse",
    "ImportRequest",
    "ImportSummaryResponse",
    "TicketImportRow",
    "format_validation_error",
]
