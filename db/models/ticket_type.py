"""
db/models/ticket_type.py

Ticket types, their dynamic field definitions, and store-defined statuses.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, RecordTimestamps

if TYPE_CHECKING:
    from db.models.store import Store


class TicketType(Base, RecordTimestamps):
    """
    A category of ticket (e.g. ski service) with its own dynamic fields.
    """

    __tablename__ = "ticket_types"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    store_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("stores.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    store: Mapped["Store"] = relationship("Store", back_populates="ticket_types")
    fields: Mapped[list["TicketField"]] = relationship(
        "TicketField",
        back_populates="ticket_type",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="TicketField.id",
    )

    __table_args__ = (Index("ix_ticket_types_store_id", "store_id"),)

    def __repr__(self) -> str:
        return f"<TicketType id={self.id} name={self.name!r}>"


class TicketField(Base):
    __tablename__ = "ticket_fields"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ticket_type_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("ticket_types.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    field_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="TEXT",
        comment="TEXT | NUMBER | DATE | DUE_DATE | CHECKBOX",
    )
    is_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    ticket_type: Mapped["TicketType"] = relationship("TicketType", back_populates="fields")

    __table_args__ = (Index("ix_ticket_fields_ticket_type_id", "ticket_type_id"),)


class CustomStatus(Base, RecordTimestamps):
    """
    Store-defined ticket status shown alongside the system statuses.
    """

    __tablename__ = "custom_statuses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    store_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("stores.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    color: Mapped[str | None] = mapped_column(String(20), nullable=True)

    __table_args__ = (Index("ix_custom_statuses_store_id", "store_id"),)
