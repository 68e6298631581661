"""
db/models/customer.py

Customer model. Email is unique per store; externalId is the customer number
carried over from a previous system.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, JSONDocument, RecordTimestamps

if TYPE_CHECKING:
    from db.models.store import Store
    from db.models.ticket import Ticket


class Customer(Base, RecordTimestamps):
    __tablename__ = "customers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    store_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("stores.id", ondelete="CASCADE"),
        nullable=False,
    )
    external_id: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
        comment="Customer number from an external system",
    )

    first_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    postal_code: Mapped[str | None] = mapped_column(String(32), nullable=True)
    city: Mapped[str | None] = mapped_column(String(255), nullable=True)
    country: Mapped[str | None] = mapped_column(String(255), nullable=True)
    date_of_birth: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    newsletter: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    loyal: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    dynamic_fields: Mapped[dict[str, Any]] = mapped_column(
        JSONDocument,
        nullable=False,
        default=dict,
        comment="Store-defined customer attributes",
    )

    # ── Relationships ──────────────────────────────────────────────────────────

    store: Mapped["Store"] = relationship("Store", back_populates="customers")
    tickets: Mapped[list["Ticket"]] = relationship(
        "Ticket",
        back_populates="customer",
        passive_deletes=True,
    )

    # ── Indexes ────────────────────────────────────────────────────────────────

    __table_args__ = (
        UniqueConstraint("store_id", "email", name="uq_customers_store_id_email"),
        Index("ix_customers_store_id", "store_id"),
        Index("ix_customers_store_external_id", "store_id", "external_id"),
    )

    def __repr__(self) -> str:
        return f"<Customer id={self.id} email={self.email!r} store_id={self.store_id}>"
