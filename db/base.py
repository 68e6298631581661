"""
db/base.py

Declarative base for the helpdesk tables (stores, users, customers, ticket
types and tickets) plus the column types and mixins they share.
"""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, DateTime, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests).
JSONDocument = JSON().with_variant(JSONB(), "postgresql")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """
    Declarative base of every helpdesk table. Alembic reads its metadata.
    """

    type_annotation_map: dict[type, Any] = {}


class RecordTimestamps:
    """
    `created_at` / `updated_at` pair carried by every helpdesk record.

    Both columns default to the database clock. Imported customers and
    tickets get them from the INSERT, never from the spreadsheet row.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=utc_now,
    )
