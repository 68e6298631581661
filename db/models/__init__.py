"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.customer import Customer
from db.models.store import Store, User
from db.models.ticket import Ticket, TicketMessage
from db.models.ticket_type import CustomStatus, TicketField, TicketType

__all__ = [
    "Store",
    "User",
    "Customer",
    "TicketType",
    "TicketField",
    "CustomStatus",
    "Ticket",
    "TicketMessage",
]
