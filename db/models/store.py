"""
db/models/store.py

Store (tenant) and user models. Every customer, ticket and ticket type is
scoped to exactly one store.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, RecordTimestamps

if TYPE_CHECKING:
    from db.models.customer import Customer
    from db.models.ticket_type import TicketType


class Store(Base, RecordTimestamps):
    __tablename__ = "stores"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # ── Relationships ──────────────────────────────────────────────────────────

    users: Mapped[list["User"]] = relationship(
        "User",
        back_populates="store",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    customers: Mapped[list["Customer"]] = relationship(
        "Customer",
        back_populates="store",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    ticket_types: Mapped[list["TicketType"]] = relationship(
        "TicketType",
        back_populates="store",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Store id={self.id} name={self.name!r}>"


class User(Base, RecordTimestamps):
    """
    Staff member of a store. Tickets reference users as creator and assignee.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    store_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("stores.id", ondelete="CASCADE"),
        nullable=False,
    )
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    store: Mapped["Store"] = relationship("Store", back_populates="users")

    __table_args__ = (Index("ix_users_store_id", "store_id"),)

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r}>"
