"""
db/models/ticket.py

Ticket and ticket message models.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, JSONDocument, RecordTimestamps

if TYPE_CHECKING:
    from db.models.customer import Customer
    from db.models.store import User
    from db.models.ticket_type import CustomStatus, TicketType


class Ticket(Base, RecordTimestamps):
    """
    Support ticket.

    `status` holds one of the system statuses; when `custom_status_id` is set
    the store-defined status takes precedence for display and export.
    """

    __tablename__ = "tickets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    store_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("stores.id", ondelete="CASCADE"),
        nullable=False,
    )
    customer_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("customers.id", ondelete="CASCADE"),
        nullable=False,
    )
    ticket_type_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("ticket_types.id", ondelete="SET NULL"),
        nullable=True,
    )
    user_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        comment="Creator",
    )
    assigned_user_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    custom_status_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("custom_statuses.id", ondelete="SET NULL"),
        nullable=True,
    )

    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="OPEN")
    due_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    dynamic_fields: Mapped[dict[str, Any]] = mapped_column(
        JSONDocument,
        nullable=False,
        default=dict,
        comment="Values for the ticket type's dynamic fields",
    )

    # ── Relationships ──────────────────────────────────────────────────────────

    customer: Mapped["Customer"] = relationship("Customer", back_populates="tickets")
    ticket_type: Mapped[Optional["TicketType"]] = relationship("TicketType")
    custom_status: Mapped[Optional["CustomStatus"]] = relationship("CustomStatus")
    assigned_user: Mapped[Optional["User"]] = relationship("User", foreign_keys=[assigned_user_id])
    messages: Mapped[list["TicketMessage"]] = relationship(
        "TicketMessage",
        back_populates="ticket",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="TicketMessage.created_at",
    )

    # ── Indexes ────────────────────────────────────────────────────────────────

    __table_args__ = (
        Index("ix_tickets_store_id", "store_id"),
        Index("ix_tickets_customer_id", "customer_id"),
        Index("ix_tickets_store_created_at", "store_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Ticket id={self.id} title={self.title!r} status={self.status!r}>"


class TicketMessage(Base, RecordTimestamps):
    __tablename__ = "ticket_messages"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    ticket_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("tickets.id", ondelete="CASCADE"),
        nullable=False,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)

    ticket: Mapped["Ticket"] = relationship("Ticket", back_populates="messages")

    __table_args__ = (Index("ix_ticket_messages_ticket_id", "ticket_id"),)
