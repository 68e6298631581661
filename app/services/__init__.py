"""
app/services package marker.
"""

from app.services.batch_import_pipeline import BatchImportPipeline, CancellationToken
from app.services.error_categories import categorize_error, categorize_errors
from app.services.export_service import (
    ExportFormatError,
    ExportResult,
    ExportService,
    flatten_for_export,
    get_export_service,
)
from app.services.import_service import ImportPreview, ImportService, get_import_service
from app.services.ticket_type_catalog import TicketTypeCatalog, get_ticket_type_catalog
from app.services.ttl_cache import TTLCache

__all__ = [
    "BatchImportPipeline",
    "CancellationToken",
    "categorize_error",
    "categorize_errors",
    "ExportFormatError",
    "ExportResult",
    "ExportService",
    "flatten_for_export",
    "get_export_service",
    "ImportPreview",
    "ImportService",
    "get_import_service",
    "TicketTypeCatalog",
    "get_ticket_type_catalog",
    "TTLCache",
]
