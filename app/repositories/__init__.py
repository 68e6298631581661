"""
app/repositories package marker.
"""

from app.repositories.customer_import_repository import CustomerImportRepository
from app.repositories.errors import ImportRepositoryError, RowRejected
from app.repositories.export_repository import ExportRepository
from app.repositories.ticket_import_repository import TicketImportRepository
from app.repositories.ticket_type_repository import TicketTypeRepository

__all__ = [
    "CustomerImportRepository",
    "ExportRepository",
    "ImportRepositoryError",
    "RowRejected",
    "TicketImportRepository",
    "TicketTypeRepository",
]
