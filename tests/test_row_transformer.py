from __future__ import annotations

import unittest

from app.domain.import_export import CUSTOMERS, TICKETS
from app.mappers.row_transformer import map_customer_row, map_ticket_row, transform_rows


class TestMapCustomerRow(unittest.TestCase):
    def test_maps_and_coerces_customer_fields(self) -> None:
        row = {
            "Namn": "Anna",
            "Epost": "anna@example.se",
            "Nyhetsbrev": "Ja",
            "Stamkund": 0,
            "Född": "1990-05-17",
            "Skostorlek": "38",
            "Ignorerad": "x",
        }
        mapping = {
            "Namn": "firstName",
            "Epost": "email",
            "Nyhetsbrev": "newsletter",
            "Stamkund": "loyal",
            "Född": "dateOfBirth",
            "Skostorlek": "custom_Skostorlek",
            "Ignorerad": "",
        }

        payload = map_customer_row(row, mapping)

        self.assertEqual(
            payload,
            {
                "firstName": "Anna",
                "email": "anna@example.se",
                "newsletter": True,
                "loyal": False,
                "dateOfBirth": "1990-05-17T00:00:00.000Z",
                "dynamicFields": {"Skostorlek": "38"},
            },
        )

    def test_dynamic_fields_only_present_when_filled(self) -> None:
        payload = map_customer_row({"Epost": "bo@example.se"}, {"Epost": "email"})

        self.assertEqual(payload, {"email": "bo@example.se"})

    def test_unparseable_birth_date_is_kept_as_text(self) -> None:
        payload = map_customer_row(
            {"Epost": "bo@example.se", "Född": "någon gång"},
            {"Epost": "email", "Född": "dateOfBirth"},
        )

        self.assertEqual(payload["dateOfBirth"], "någon gång")

    def test_numbers_stay_numbers(self) -> None:
        payload = map_customer_row({"Postnr": 12345}, {"Postnr": "postalCode"})

        self.assertEqual(payload, {"postalCode": 12345})


class TestMapTicketRow(unittest.TestCase):
    def test_maps_ticket_fields_and_absorbs_unmapped_field_columns(self) -> None:
        row = {
            "Titel": "Vallning",
            "Kundens e-post": "anna@example.se",
            "Status": "Pågår",
            "Deadline": "inte ett datum",
            "Skida": "Atomic",
            "field_Kommentar": "Snabbt",
        }
        mapping = {
            "Titel": "title",
            "Kundens e-post": "customerEmail",
            "Status": "status",
            "Deadline": "dueDate",
            "Skida": "field_Skida",
        }

        payload = map_ticket_row(row, mapping)

        self.assertEqual(
            payload,
            {
                "title": "Vallning",
                "customerEmail": "anna@example.se",
                "status": "IN_PROGRESS",
                "dynamicFields": {"Skida": "Atomic", "Kommentar": "Snabbt"},
            },
        )

    def test_due_date_is_normalized(self) -> None:
        payload = map_ticket_row({"Deadline": "15.06.2024"}, {"Deadline": "dueDate"})

        self.assertEqual(payload["dueDate"], "2024-06-15T00:00:00.000Z")

    def test_due_date_backfilled_from_date_like_dynamic_field(self) -> None:
        payload = map_ticket_row(
            {"Titel": "Slipning", "field_Klar": "2025-01-20"},
            {"Titel": "title"},
        )

        self.assertEqual(payload["dueDate"], "2025-01-20T00:00:00.000Z")
        self.assertEqual(payload["dynamicFields"], {"Klar": "2025-01-20"})

    def test_dynamic_fields_column_accepts_json_objects(self) -> None:
        mapping = {"Extra": "dynamicFields"}

        parsed = map_ticket_row({"Extra": '{"färg": "röd"}'}, mapping)
        raw = map_ticket_row({"Extra": "hej"}, mapping)

        self.assertEqual(parsed["dynamicFields"], {"färg": "röd"})
        self.assertEqual(raw["dynamicFields"], {"rawValue": "hej"})

    def test_ticket_type_column_accepts_id_or_name(self) -> None:
        mapping = {"Typ": "ticketTypeId"}

        by_id = map_ticket_row({"Typ": "2"}, mapping)
        by_name = map_ticket_row({"Typ": " Skidservice "}, mapping)

        self.assertEqual(by_id["ticketTypeId"], 2)
        self.assertEqual(by_name["ticketTypeName"], "Skidservice")
        self.assertNotIn("ticketTypeId", by_name)

    def test_non_numeric_customer_id_becomes_none(self) -> None:
        payload = map_ticket_row({"Kund": "abc"}, {"Kund": "customerId"})

        self.assertIsNone(payload["customerId"])

    def test_dynamic_fields_always_present(self) -> None:
        self.assertEqual(map_ticket_row({}, {"Titel": "title"}), {"dynamicFields": {}})


class TestTransformRows(unittest.TestCase):
    def test_row_failure_is_isolated(self) -> None:
        rows = [{"Epost": "a@example.se"}, None, {"Epost": "c@example.se"}]

        results = transform_rows(rows, {"Epost": "email"}, CUSTOMERS)

        self.assertEqual([result.ok for result in results], [True, False, True])
        self.assertEqual(results[1].row_number, 2)
        self.assertTrue(str(results[1].error).startswith("Rad 2: Kunde inte tolka raden"))
        self.assertEqual(results[2].payload, {"email": "c@example.se"})

    def test_unknown_entity_kind(self) -> None:
        with self.assertRaises(ValueError):
            transform_rows([{}], {}, "orders")

    def test_ticket_rows_number_from_one(self) -> None:
        results = transform_rows([{"Titel": "A"}, {"Titel": "B"}], {"Titel": "title"}, TICKETS)

        self.assertEqual([result.row_number for result in results], [1, 2])
