from __future__ import annotations

import unittest
from datetime import date, datetime, timezone

from app.mappers.date_normalizer import date_part, parse_date, parse_date_generic_first, parse_datetime


class TestParseDate(unittest.TestCase):
    def test_iso_inputs(self) -> None:
        self.assertEqual(parse_date("2025-03-04"), "2025-03-04T00:00:00.000Z")
        self.assertEqual(parse_date("2024-01-15T10:30:00Z"), "2024-01-15T10:30:00.000Z")
        self.assertEqual(parse_date("2024-01-15T10:30:00+02:00"), "2024-01-15T08:30:00.000Z")

    def test_ambiguous_slashed_date_reads_month_first(self) -> None:
        self.assertEqual(parse_date("03/04/2025"), "2025-03-04T00:00:00.000Z")
        self.assertEqual(parse_date("04/13/2025"), "2025-04-13T00:00:00.000Z")

    def test_slashed_date_falls_back_to_day_first(self) -> None:
        self.assertEqual(parse_date("13/04/2025"), "2025-04-13T00:00:00.000Z")
        self.assertIsNone(parse_date("13/13/2025"))

    def test_dotted_day_first(self) -> None:
        self.assertEqual(parse_date("15.06.2024"), "2024-06-15T00:00:00.000Z")
        self.assertEqual(parse_date("01.04.2025"), "2025-04-01T00:00:00.000Z")

    def test_calendar_date_survives_every_format(self) -> None:
        for value in ("2025-04-01", "01.04.2025", "04/01/2025", "1 april 2025"):
            with self.subTest(value=value):
                self.assertEqual(parse_date(value), "2025-04-01T00:00:00.000Z")

    def test_swedish_month_names(self) -> None:
        self.assertEqual(parse_date("5 maj 2024"), "2024-05-05T00:00:00.000Z")
        self.assertEqual(parse_date("12 okt. 2023"), "2023-10-12T00:00:00.000Z")
        self.assertEqual(parse_date("1 Januari 2022"), "2022-01-01T00:00:00.000Z")

    def test_unparseable_and_empty_values(self) -> None:
        self.assertIsNone(parse_date(None))
        self.assertIsNone(parse_date(""))
        self.assertIsNone(parse_date("   "))
        self.assertIsNone(parse_date("inte ett datum"))
        self.assertIsNone(parse_date("2024-02-30"))

    def test_output_is_a_fixed_point(self) -> None:
        for value in ("2025-03-04", "03/04/2025", "5 maj 2024", "2024-01-15T10:30:00Z", "15.06.2024"):
            with self.subTest(value=value):
                once = parse_date(value)
                self.assertIsNotNone(once)
                self.assertEqual(parse_date(once), once)

    def test_date_and_datetime_objects(self) -> None:
        self.assertEqual(parse_date(date(2024, 2, 29)), "2024-02-29T00:00:00.000Z")
        aware = datetime(2024, 2, 29, 12, 0, tzinfo=timezone.utc)
        self.assertEqual(parse_datetime(aware), aware)


class TestBirthDateParsing(unittest.TestCase):
    def test_ambiguous_numeric_birth_date_reads_month_first(self) -> None:
        self.assertEqual(parse_date_generic_first("03/04/2025"), "2025-03-04T00:00:00.000Z")

    def test_day_first_when_leading_part_cannot_be_a_month(self) -> None:
        self.assertEqual(parse_date_generic_first("17-05-1990"), "1990-05-17T00:00:00.000Z")

    def test_iso_birth_date(self) -> None:
        self.assertEqual(parse_date_generic_first("1990-05-17"), "1990-05-17T00:00:00.000Z")


class TestDatePart(unittest.TestCase):
    def test_returns_utc_calendar_day(self) -> None:
        self.assertEqual(date_part("2024-06-01T23:30:00+02:00"), "2024-06-01")
        self.assertEqual(date_part("2024-06-02T01:30:00+02:00"), "2024-06-01")

    def test_empty_for_missing_values(self) -> None:
        self.assertEqual(date_part(None), "")
        self.assertEqual(date_part("okänt"), "")
