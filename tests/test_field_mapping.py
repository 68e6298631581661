from __future__ import annotations

import pytest

from app.domain.import_export import CUSTOMERS, TICKETS, TicketFieldDefinition
from app.mappers.field_mapping import (
    CUSTOMER_TARGET_FIELDS,
    FieldMappingSession,
    build_mapping,
    missing_important_fields,
    remap,
    suggest_alternatives,
    target_fields_for,
)

SKI_SERVICE_FIELDS = (
    TicketFieldDefinition(name="Skida"),
    TicketFieldDefinition(name="Sulmått", field_type="NUMBER"),
    TicketFieldDefinition(name="Klar", field_type="DUE_DATE"),
)


def test_customer_happy_path_maps_swedish_headers() -> None:
    headers = ["Namn", "Efternamn", "Epost", "Telefon", "Stad", "Postnummer"]

    mapping = build_mapping(headers, CUSTOMER_TARGET_FIELDS, CUSTOMERS)

    assert mapping == {
        "Namn": "firstName",
        "Efternamn": "lastName",
        "Epost": "email",
        "Telefon": "phoneNumber",
        "Stad": "city",
        "Postnummer": "postalCode",
    }


def test_mapping_is_injective() -> None:
    mapping = build_mapping(["E-post", "Email"], CUSTOMER_TARGET_FIELDS, CUSTOMERS)

    assert mapping == {"E-post": "email"}
    assert len(set(mapping.values())) == len(mapping)


def test_unmatched_columns_are_left_out() -> None:
    assert build_mapping(["Skostorlek"], CUSTOMER_TARGET_FIELDS, CUSTOMERS) == {}


def test_custom_looking_columns_go_to_dynamic_fields() -> None:
    mapping = build_mapping(["Extra info"], CUSTOMER_TARGET_FIELDS, CUSTOMERS)

    assert mapping == {"Extra info": "dynamicFields"}


def test_ticket_headers_map_onto_ticket_type_fields() -> None:
    targets = target_fields_for(TICKETS, SKI_SERVICE_FIELDS)
    headers = ["Titel", "Kundens e-post", "Skida", "Sulmått", "Status", "Beskrivning"]

    mapping = build_mapping(headers, targets, TICKETS)

    assert mapping == {
        "Titel": "title",
        "Kundens e-post": "customerEmail",
        "Skida": "field_Skida",
        "Sulmått": "field_Sulmått",
        "Status": "status",
        "Beskrivning": "description",
    }


def test_ticket_targets_append_one_field_per_definition() -> None:
    targets = target_fields_for(TICKETS, SKI_SERVICE_FIELDS)

    assert targets[-3:] == ("field_Skida", "field_Sulmått", "field_Klar")
    assert "customerEmail" in targets


def test_unknown_entity_kind_is_rejected() -> None:
    with pytest.raises(ValueError):
        build_mapping(["Epost"], CUSTOMER_TARGET_FIELDS, "orders")


def test_remap_keeps_confirmed_entries() -> None:
    headers = ["Namn", "Epost", "Stad"]
    current = {"Namn": "", "Epost": "", "Stad": "country"}

    added = remap(headers, CUSTOMER_TARGET_FIELDS, CUSTOMERS, current)

    assert added == {"Namn": "firstName", "Epost": "email"}
    assert "Stad" not in added


def test_remap_matches_misspelled_headers() -> None:
    headers = ["Emial", "Postalcod"]

    added = remap(headers, CUSTOMER_TARGET_FIELDS, CUSTOMERS, {"Emial": "", "Postalcod": ""})

    assert added == {"Emial": "email", "Postalcod": "postalCode"}


def test_auto_map_remaining_matches_misspelled_ticket_field() -> None:
    session = FieldMappingSession(
        source_fields=["Titel", "Skdia"],
        target_fields=target_fields_for(TICKETS, SKI_SERVICE_FIELDS),
        entity_kind=TICKETS,
        initial_mapping={"Titel": "title"},
    )

    added = session.auto_map_remaining()

    assert added == {"Skdia": "field_Skida"}
    assert session.mapping == {"Titel": "title", "Skdia": "field_Skida"}


def test_suggestions_include_misspelled_header_matches() -> None:
    ranked = suggest_alternatives("Emial", {}, CUSTOMER_TARGET_FIELDS, CUSTOMERS)

    assert ranked
    assert ranked[0].field == "email"
    assert suggest_alternatives("Emial", {"Mejl": "email"}, CUSTOMER_TARGET_FIELDS, CUSTOMERS) == []


def test_suggestions_skip_targets_already_taken() -> None:
    targets = target_fields_for(TICKETS)

    free = suggest_alternatives("Kundens e-post", {}, targets, TICKETS)
    taken = suggest_alternatives("Kundens e-post", {"Mejl": "customerEmail"}, targets, TICKETS)

    assert [suggestion.field for suggestion in free] == ["customerEmail"]
    assert free[0].score == 1.0
    assert taken == []


def test_missing_important_fields_lists_unmapped_targets() -> None:
    assert missing_important_fields(CUSTOMERS, {"Epost": "email"}) == ["externalId", "firstName", "lastName"]
    assert missing_important_fields(TICKETS, {"Titel": "title", "Mejl": "customerEmail"}) == []


def test_comment_field_is_important_once_the_ticket_type_defines_it() -> None:
    confirmed = {"Titel": "title", "Mejl": "customerEmail"}
    with_comment = target_fields_for(TICKETS, (TicketFieldDefinition(name="Kommentar"),))

    assert missing_important_fields(TICKETS, confirmed, with_comment) == ["field_Kommentar"]
    assert missing_important_fields(TICKETS, confirmed, target_fields_for(TICKETS, SKI_SERVICE_FIELDS)) == []
    assert missing_important_fields(TICKETS, {**confirmed, "Kommentar": "field_Kommentar"}, with_comment) == []


class TestFieldMappingSession:
    def test_auto_session_reports_stats(self) -> None:
        session = FieldMappingSession.auto(
            source_fields=["Namn", "Epost", "Skostorlek"],
            target_fields=CUSTOMER_TARGET_FIELDS,
            entity_kind=CUSTOMERS,
        )

        stats = session.stats()

        assert stats["total"] == 3
        assert stats["mapped"] == 2
        assert stats["percent"] == 67
        assert stats["missing_important_fields"] == ["externalId", "lastName"]

    def test_manual_edits_survive_auto_map_remaining(self) -> None:
        session = FieldMappingSession.auto(
            source_fields=["Namn", "Epost", "Stad"],
            target_fields=CUSTOMER_TARGET_FIELDS,
            entity_kind=CUSTOMERS,
        )
        session.clear("Epost")
        session.set("Stad", "country")

        added = session.auto_map_remaining()

        assert added == {"Epost": "email"}
        assert session.mapping == {"Namn": "firstName", "Epost": "email", "Stad": "country"}

    def test_clear_all_blanks_every_entry(self) -> None:
        session = FieldMappingSession.auto(
            source_fields=["Namn", "Epost"],
            target_fields=CUSTOMER_TARGET_FIELDS,
            entity_kind=CUSTOMERS,
        )

        session.clear()

        assert session.mapping == {"Namn": "", "Epost": ""}
        assert session.stats()["mapped"] == 0
