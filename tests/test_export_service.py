from __future__ import annotations

import csv
import io
import json

import pytest
from openpyxl import load_workbook

from app.config import ExportSettings
from app.domain.import_export import CUSTOMERS, TICKETS
from app.services.export_service import (
    ExportFormatError,
    ExportResult,
    ExportService,
    flatten_for_export,
    to_csv_bytes,
    to_excel_bytes,
    to_json_bytes,
    validate_export_request,
)


def _ticket(ticket_id: int, **overrides) -> dict:  # noqa: ANN003
    ticket = {
        "id": ticket_id,
        "title": f"Ärende {ticket_id}",
        "description": None,
        "status": "OPEN",
        "createdAt": "2025-01-10T09:00:00Z",
        "updatedAt": "2025-01-11T09:00:00Z",
        "dueDate": None,
        "customerId": 1,
        "ticketTypeId": 1,
        "dynamicFields": {},
        "customer": {"email": "anna@example.se", "firstName": "Anna", "lastName": "Berg"},
        "ticketType": {"name": "Skidservice"},
        "customStatus": None,
        "messages": [],
        "assignedUser": None,
    }
    ticket.update(overrides)
    return ticket


class TestFlattenTickets:
    def test_dynamic_columns_are_the_union_of_all_tickets(self) -> None:
        tickets = [
            _ticket(1, dynamicFields={"Skida": "Atomic"}),
            _ticket(2, dynamicFields={"Sulmått": 305}),
        ]

        result = flatten_for_export(tickets, TICKETS, False)

        assert "field_Skida" in result.fields
        assert "field_Sulmått" in result.fields
        assert result.rows[0]["field_Skida"] == "Atomic"
        assert result.rows[0]["field_Sulmått"] == ""
        assert result.rows[1]["field_Skida"] == ""
        assert result.rows[1]["field_Sulmått"] == 305

    def test_defined_field_names_get_columns_even_when_unused(self) -> None:
        result = flatten_for_export([_ticket(1)], TICKETS, False, ticket_field_names=["Klar"])

        assert result.rows[0]["field_Klar"] == ""

    def test_every_row_has_the_same_columns(self) -> None:
        tickets = [
            _ticket(1, customStatus={"name": "Väntar på delar", "color": "#ffaa00"}),
            _ticket(2),
        ]

        result = flatten_for_export(tickets, TICKETS, True)

        assert all(list(row) == result.fields for row in result.rows)
        assert result.rows[0]["status"] == "Väntar på delar (Anpassad)"
        assert result.rows[0]["customStatusColor"] == "#ffaa00"
        assert result.rows[1]["status"] == "OPEN"
        assert result.rows[1]["customStatusName"] == ""

    def test_ticket_fields_and_relations(self) -> None:
        ticket = _ticket(
            7,
            dueDate="2025-02-01T00:00:00Z",
            messages=[{"createdAt": "2025-01-12T08:00:00Z"}, {"createdAt": "2025-01-15T08:00:00Z"}],
            assignedUser={"email": "personal@skidbutiken.se"},
        )

        row = flatten_for_export([ticket], TICKETS, True).rows[0]

        assert row["customerName"] == "Anna Berg"
        assert row["customerEmail"] == "anna@example.se"
        assert row["ticketTypeName"] == "Skidservice"
        assert row["createdAt"] == "2025-01-10"
        assert row["dueDate"] == "2025-02-01"
        assert row["description"] == ""
        assert row["messageCount"] == 2
        assert row["lastMessageDate"] == "2025-01-15"
        assert row["assignedUserEmail"] == "personal@skidbutiken.se"

    def test_relations_are_left_out_on_request(self) -> None:
        row = flatten_for_export([_ticket(1)], TICKETS, False).rows[0]

        assert "messageCount" not in row
        assert "assignedUserEmail" not in row


class TestFlattenCustomers:
    def test_customer_row(self) -> None:
        customer = {
            "id": 3,
            "firstName": "Anna",
            "lastName": None,
            "email": "anna@example.se",
            "dateOfBirth": "1990-05-17T00:00:00Z",
            "newsletter": None,
            "loyal": True,
            "dynamicFields": {"Skostorlek": 38},
            "tickets": [{"id": 1}, {"id": 2}],
        }

        row = flatten_for_export([customer], CUSTOMERS, True).rows[0]

        assert row["lastName"] == ""
        assert row["dateOfBirth"] == "1990-05-17"
        assert row["newsletter"] is False
        assert row["loyal"] is True
        assert row["custom_Skostorlek"] == 38
        assert row["ticketCount"] == 2

    def test_ticket_count_from_precomputed_value(self) -> None:
        row = flatten_for_export([{"id": 1, "email": "a@example.se", "ticketCount": 4}], CUSTOMERS, True).rows[0]

        assert row["ticketCount"] == 4

    def test_unknown_entity_kind(self) -> None:
        with pytest.raises(ExportFormatError):
            flatten_for_export([], "orders", False)


class TestWriters:
    def setup_method(self) -> None:
        self.result = ExportResult(
            rows=[
                {"id": 1, "email": "anna@example.se", "custom_Extra": {"a": 1}},
                {"id": 2, "email": "bo@example.se", "custom_Extra": ""},
            ],
            fields=["id", "email", "custom_Extra"],
        )

    def test_csv_has_header_and_serialized_values(self) -> None:
        content = to_csv_bytes(self.result).decode("utf-8")

        rows = list(csv.DictReader(io.StringIO(content)))

        assert content.startswith("id,email,custom_Extra\r\n")
        assert rows[0]["custom_Extra"] == '{"a": 1}'
        assert rows[1]["email"] == "bo@example.se"

    def test_excel_header_is_bold_and_sheets_are_named(self) -> None:
        content = to_excel_bytes({CUSTOMERS: self.result, TICKETS: ExportResult(rows=[], fields=["id"])})

        workbook = load_workbook(io.BytesIO(content))

        assert workbook.sheetnames == ["Kunder", "Ärenden"]
        sheet = workbook["Kunder"]
        assert [cell.value for cell in sheet[1]] == ["id", "email", "custom_Extra"]
        assert sheet["A1"].font.bold is True
        assert sheet.freeze_panes == "A2"
        assert sheet["B3"].value == "bo@example.se"

    def test_excel_without_sheets_still_opens(self) -> None:
        workbook = load_workbook(io.BytesIO(to_excel_bytes({})))

        assert workbook.sheetnames == ["Export"]

    def test_json_keeps_non_ascii(self) -> None:
        content = to_json_bytes([{"title": "Ärende"}])

        assert json.loads(content) == [{"title": "Ärende"}]
        assert "Ärende".encode("utf-8") in content


class TestExportRequest:
    def test_csv_cannot_hold_two_entities(self) -> None:
        with pytest.raises(ExportFormatError) as exc_info:
            validate_export_request("all", "csv")

        assert exc_info.value.parameter == "format"

    @pytest.mark.parametrize(
        ("export_type", "export_format", "parameter"),
        [("orders", "json", "type"), ("customers", "pdf", "format")],
    )
    def test_invalid_values(self, export_type: str, export_format: str, parameter: str) -> None:
        with pytest.raises(ExportFormatError) as exc_info:
            validate_export_request(export_type, export_format)

        assert exc_info.value.to_dict()["parameter"] == parameter

    def test_limit_resolution(self) -> None:
        service = ExportService(settings=ExportSettings(default_limit=100, max_limit=500))

        assert service.resolve_limit(None) == 100
        assert service.resolve_limit("abc") == 100
        assert service.resolve_limit("0") == 100
        assert service.resolve_limit("20") == 20
        assert service.resolve_limit(9999) == 500
