"""
app/repositories/ticket_type_repository.py

Loads a store's ticket types and custom statuses as detached value objects.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from app.domain.import_export import VALID_FIELD_TYPES, TicketFieldDefinition, TicketTypeInfo
from db.models.ticket_type import CustomStatus, TicketType


class TicketTypeRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def list_for_store(self, store_id: int) -> list[TicketTypeInfo]:
        """
        Ticket types in creation order, each with its field definitions.
        """

        stmt = (
            select(TicketType)
            .where(TicketType.store_id == store_id)
            .options(selectinload(TicketType.fields))
            .order_by(TicketType.id.asc())
        )
        ticket_types = self._session.execute(stmt).scalars().all()
        return [
            TicketTypeInfo(
                id=ticket_type.id,
                name=ticket_type.name,
                fields=tuple(
                    TicketFieldDefinition(
                        name=ticket_field.name,
                        field_type=ticket_field.field_type if ticket_field.field_type in VALID_FIELD_TYPES else "TEXT",
                        is_required=bool(ticket_field.is_required),
                    )
                    for ticket_field in ticket_type.fields
                ),
            )
            for ticket_type in ticket_types
        ]

    def custom_status_ids(self, store_id: int) -> set[int]:
        stmt = select(CustomStatus.id).where(CustomStatus.store_id == store_id)
        return set(self._session.execute(stmt).scalars().all())
