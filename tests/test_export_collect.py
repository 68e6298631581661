from __future__ import annotations

import json
from datetime import datetime

import pytest
from sqlalchemy.orm import Session

from app.config import ExportSettings
from app.services.export_service import ExportService
from db.models import Customer, Ticket, TicketMessage


@pytest.fixture()
def exported_store(db_session: Session, seeded_store):  # noqa: ANN001, ANN201
    anna = Customer(
        store_id=seeded_store.store_id,
        email="anna@example.se",
        first_name="Anna",
        last_name="Berg",
        dynamic_fields={"Skostorlek": 38},
    )
    bo = Customer(store_id=seeded_store.store_id, email="bo@example.se", first_name="Bo", dynamic_fields={})
    stranger = Customer(store_id=seeded_store.other_store_id, email="annan@example.se", dynamic_fields={})
    db_session.add_all([anna, bo, stranger])
    db_session.flush()

    older = Ticket(
        store_id=seeded_store.store_id,
        customer_id=anna.id,
        ticket_type_id=seeded_store.service_type_id,
        assigned_user_id=seeded_store.user_id,
        custom_status_id=seeded_store.custom_status_id,
        title="Vallning",
        status="OPEN",
        dynamic_fields={"Skida": "Atomic"},
        created_at=datetime(2025, 1, 10, 12, 0),
        messages=[
            TicketMessage(content="Inlämnad", created_at=datetime(2025, 1, 10, 12, 0)),
            TicketMessage(content="Klar imorgon", created_at=datetime(2025, 1, 12, 12, 0)),
        ],
    )
    newer = Ticket(
        store_id=seeded_store.store_id,
        customer_id=anna.id,
        ticket_type_id=seeded_store.service_type_id,
        title="Bindningsmontering",
        status="IN_PROGRESS",
        dynamic_fields={"Bindning": "Marker"},
        created_at=datetime(2025, 2, 1, 12, 0),
    )
    db_session.add_all([older, newer])
    db_session.commit()
    return seeded_store


@pytest.fixture()
def service() -> ExportService:
    return ExportService(settings=ExportSettings(default_limit=100, max_limit=500))


def test_customers_are_scoped_to_the_store(service: ExportService, db_session: Session, exported_store) -> None:  # noqa: ANN001
    results = service.collect(
        db=db_session,
        store_id=exported_store.store_id,
        export_type="customers",
        include_relations=True,
        limit=100,
    )

    rows = results["customers"].rows
    assert [row["email"] for row in rows] == ["anna@example.se", "bo@example.se"]
    assert [row["ticketCount"] for row in rows] == [2, 0]
    assert rows[0]["custom_Skostorlek"] == 38
    assert rows[1]["custom_Skostorlek"] == ""
    assert "tickets" not in results


def test_tickets_newest_first_with_relations(service: ExportService, db_session: Session, exported_store) -> None:  # noqa: ANN001
    results = service.collect(
        db=db_session,
        store_id=exported_store.store_id,
        export_type="tickets",
        include_relations=True,
        limit=100,
    )

    result = results["tickets"]
    newer, older = result.rows
    assert newer["title"] == "Bindningsmontering"
    assert newer["status"] == "IN_PROGRESS"
    assert newer["messageCount"] == 0
    assert newer["assignedUserEmail"] == ""
    assert newer["field_Skida"] == ""

    assert older["status"] == "Väntar på delar (Anpassad)"
    assert older["customStatusColor"] == "#ffaa00"
    assert older["customerName"] == "Anna Berg"
    assert older["ticketTypeName"] == "Skidservice"
    assert older["createdAt"] == "2025-01-10"
    assert older["messageCount"] == 2
    assert older["lastMessageDate"] == "2025-01-12"
    assert older["assignedUserEmail"] == "personal@skidbutiken.se"

    dynamic_columns = [name for name in result.fields if name.startswith("field_")]
    assert dynamic_columns == [
        "field_Bindning",
        "field_Skida",
        "field_Sulmått",
        "field_Klar",
        "field_Serienummer",
    ]


def test_relations_can_be_left_out(service: ExportService, db_session: Session, exported_store) -> None:  # noqa: ANN001
    results = service.collect(
        db=db_session,
        store_id=exported_store.store_id,
        export_type="all",
        include_relations=False,
        limit=1,
    )

    assert len(results["customers"].rows) == 1
    assert "ticketCount" not in results["customers"].fields
    assert [row["title"] for row in results["tickets"].rows] == ["Bindningsmontering"]
    assert "messageCount" not in results["tickets"].fields


def test_export_renders_json_for_all(service: ExportService, db_session: Session, exported_store) -> None:  # noqa: ANN001
    rendered = service.export(
        db=db_session,
        store_id=exported_store.store_id,
        export_type="all",
        export_format="json",
        limit="abc",
    )

    payload = json.loads(rendered.content.decode("utf-8"))
    assert set(payload) == {"customers", "tickets"}
    assert len(payload["tickets"]) == 2
    assert rendered.media_type.startswith("application/json")
    assert rendered.filename.startswith("all-export-")
    assert rendered.filename.endswith(".json")
