"""
app/repositories/export_repository.py

Read-side queries for exports. Returns plain dicts keyed the way export rows
are named so flattening never touches ORM objects.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from db.models.customer import Customer
from db.models.ticket import Ticket
from db.models.ticket_type import TicketField, TicketType


def _customer_dict(customer: Customer) -> dict[str, Any]:
    return {
        "id": customer.id,
        "externalId": customer.external_id,
        "firstName": customer.first_name,
        "lastName": customer.last_name,
        "email": customer.email,
        "phoneNumber": customer.phone_number,
        "address": customer.address,
        "postalCode": customer.postal_code,
        "city": customer.city,
        "country": customer.country,
        "dateOfBirth": customer.date_of_birth,
        "newsletter": customer.newsletter,
        "loyal": customer.loyal,
        "dynamicFields": dict(customer.dynamic_fields or {}),
    }


def _ticket_dict(ticket: Ticket, include_relations: bool) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "id": ticket.id,
        "title": ticket.title,
        "description": ticket.description,
        "status": ticket.status,
        "createdAt": ticket.created_at,
        "updatedAt": ticket.updated_at,
        "dueDate": ticket.due_date,
        "customerId": ticket.customer_id,
        "ticketTypeId": ticket.ticket_type_id,
        "dynamicFields": dict(ticket.dynamic_fields or {}),
        "customer": None,
        "ticketType": None,
        "customStatus": None,
    }
    if ticket.customer is not None:
        payload["customer"] = {
            "email": ticket.customer.email,
            "firstName": ticket.customer.first_name,
            "lastName": ticket.customer.last_name,
        }
    if ticket.ticket_type is not None:
        payload["ticketType"] = {"name": ticket.ticket_type.name}
    if ticket.custom_status is not None:
        payload["customStatus"] = {
            "name": ticket.custom_status.name,
            "color": ticket.custom_status.color,
        }
    if include_relations:
        payload["messages"] = [{"createdAt": message.created_at} for message in ticket.messages]
        payload["assignedUser"] = (
            {"email": ticket.assigned_user.email} if ticket.assigned_user is not None else None
        )
    return payload


class ExportRepository:
    """
    Store-scoped export queries.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def list_customers(
        self,
        *,
        store_id: int,
        limit: int,
        include_relations: bool,
    ) -> list[dict[str, Any]]:
        stmt = (
            select(Customer)
            .where(Customer.store_id == store_id)
            .order_by(Customer.id.asc())
            .limit(limit)
        )
        customers = list(self._session.execute(stmt).scalars().all())
        rows = [_customer_dict(customer) for customer in customers]
        if not include_relations or not customers:
            return rows

        count_stmt = (
            select(Ticket.customer_id, func.count(Ticket.id))
            .where(Ticket.customer_id.in_([customer.id for customer in customers]))
            .group_by(Ticket.customer_id)
        )
        counts = {customer_id: count for customer_id, count in self._session.execute(count_stmt).all()}
        for row in rows:
            row["ticketCount"] = int(counts.get(row["id"], 0))
        return rows

    def list_tickets(
        self,
        *,
        store_id: int,
        limit: int,
        include_relations: bool,
    ) -> list[dict[str, Any]]:
        """
        Newest tickets first, with customer, type and custom status joined in.
        """

        options = [
            selectinload(Ticket.customer),
            selectinload(Ticket.ticket_type),
            selectinload(Ticket.custom_status),
        ]
        if include_relations:
            options.extend([selectinload(Ticket.messages), selectinload(Ticket.assigned_user)])

        stmt = (
            select(Ticket)
            .where(Ticket.store_id == store_id)
            .options(*options)
            .order_by(Ticket.created_at.desc(), Ticket.id.desc())
            .limit(limit)
        )
        tickets = self._session.execute(stmt).scalars().all()
        return [_ticket_dict(ticket, include_relations) for ticket in tickets]

    def ticket_field_names(self, *, store_id: int) -> list[str]:
        """
        Every dynamic field name defined on any of the store's ticket types.
        """

        stmt = (
            select(TicketField.name)
            .join(TicketType, TicketField.ticket_type_id == TicketType.id)
            .where(TicketType.store_id == store_id)
            .order_by(TicketType.id.asc(), TicketField.id.asc())
        )
        names: dict[str, None] = {}
        for name in self._session.execute(stmt).scalars().all():
            names.setdefault(name, None)
        return list(names)
