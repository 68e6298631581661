"""
app/mappers/field_mapping.py

Automatic source-to-target field mapping for customer and ticket imports.

The builder is a set of pure functions over (source fields, target fields,
entity kind). `FieldMappingSession` owns the one mutable mapping a user edits
while confirming an import.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence

from app.domain.import_export import (
    CUSTOMERS,
    TICKETS,
    VALID_ENTITY_KINDS,
    FieldMapping,
    FieldSuggestion,
    TicketFieldDefinition,
)
from app.mappers.field_normalizer import DYNAMIC_FIELD_PREFIX, normalize_field_name
from app.mappers.field_similarity import (
    AUTO_MAP_THRESHOLD,
    FUZZY_MATCH_THRESHOLD,
    SUGGESTION_LIMIT,
    SUGGESTION_THRESHOLD,
    fuzzy_similarity,
    score_normalized,
)

logger = logging.getLogger(__name__)

DYNAMIC_FIELDS_TARGET = "dynamicFields"

CUSTOMER_TARGET_FIELDS: tuple[str, ...] = (
    "firstName",
    "lastName",
    "email",
    "phoneNumber",
    "address",
    "postalCode",
    "city",
    "country",
    "dateOfBirth",
    "newsletter",
    "loyal",
    "externalId",
    DYNAMIC_FIELDS_TARGET,
)

TICKET_BASE_TARGET_FIELDS: tuple[str, ...] = (
    "title",
    "description",
    "status",
    "dueDate",
    "customerEmail",
    "customerId",
    "externalCustomerId",
    "ticketTypeId",
    DYNAMIC_FIELDS_TARGET,
)

IMPORTANT_TARGET_FIELDS: dict[str, tuple[str, ...]] = {
    CUSTOMERS: ("externalId", "email", "firstName", "lastName"),
    TICKETS: ("customerEmail", "title", f"{DYNAMIC_FIELD_PREFIX}Kommentar"),
}

DYNAMIC_FIELD_KEYWORDS: frozenset[str] = frozenset({"custom", "anpassad", "extra", "field"})


def _ensure_entity_kind(entity_kind: str) -> str:
    if entity_kind not in VALID_ENTITY_KINDS:
        raise ValueError(
            f"Unknown entity kind '{entity_kind}'. Allowed values: {sorted(VALID_ENTITY_KINDS)}."
        )
    return entity_kind


def ticket_target_fields(definitions: Iterable[TicketFieldDefinition] = ()) -> tuple[str, ...]:
    """
    Fixed ticket targets followed by one `field_<name>` per ticket-type field.
    """

    dynamic = tuple(f"{DYNAMIC_FIELD_PREFIX}{definition.name}" for definition in definitions)
    return TICKET_BASE_TARGET_FIELDS + dynamic


def target_fields_for(
    entity_kind: str,
    definitions: Iterable[TicketFieldDefinition] = (),
) -> tuple[str, ...]:
    """
    Return the ordered target field set for one entity kind.
    """

    if _ensure_entity_kind(entity_kind) == CUSTOMERS:
        return CUSTOMER_TARGET_FIELDS
    return ticket_target_fields(definitions)


# ---------------------------------------------------------------------------
# Score boosts
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MatchCandidate:
    """
    One (source, target) pair under evaluation.
    """

    source_field: str
    normalized_source: str
    target_field: str
    normalized_target: str
    entity_kind: str


@dataclass(frozen=True)
class DynamicFieldsKeywordBoost:
    """
    Route columns that look like custom data to the generic dynamic bucket.
    """

    floor: float = 0.85
    keywords: frozenset[str] = DYNAMIC_FIELD_KEYWORDS

    def __call__(self, candidate: MatchCandidate, score: float) -> float:
        if candidate.target_field != DYNAMIC_FIELDS_TARGET:
            return score
        source = candidate.source_field.lower()
        if any(keyword in source for keyword in self.keywords):
            return max(score, self.floor)
        return score


@dataclass(frozen=True)
class TicketFieldNameBoost:
    """
    Prefer a ticket-type field whose name appears in the source column.
    """

    score: float = 0.95

    def __call__(self, candidate: MatchCandidate, score: float) -> float:
        if candidate.entity_kind != TICKETS:
            return score
        if not candidate.target_field.lower().startswith(DYNAMIC_FIELD_PREFIX):
            return score
        field_name = candidate.target_field[len(DYNAMIC_FIELD_PREFIX) :].lower()
        if not field_name:
            return score
        raw_source = "".join(candidate.source_field.lower().split())
        if field_name in candidate.normalized_source or field_name in raw_source:
            return max(score, self.score)
        return score


@dataclass(frozen=True)
class PersonNameBoost:
    """
    A bare name column ("Namn", "Name") holds the customer's first name.
    """

    score: float = 0.8

    def __call__(self, candidate: MatchCandidate, score: float) -> float:
        if candidate.entity_kind != CUSTOMERS or candidate.target_field != "firstName":
            return score
        if candidate.normalized_source == "name":
            return max(score, self.score)
        return score


BOOST_RULES = (
    DynamicFieldsKeywordBoost(),
    TicketFieldNameBoost(),
    PersonNameBoost(),
)


def score_candidate(candidate: MatchCandidate, boosts: Sequence = BOOST_RULES) -> float:
    """
    Base similarity of the normalized names, adjusted by each boost in order.
    """

    score = score_normalized(candidate.normalized_source, candidate.normalized_target)
    for boost in boosts:
        score = boost(candidate, score)
    return score


def _score_pair(source_field: str, target_field: str, entity_kind: str) -> float:
    return score_candidate(
        MatchCandidate(
            source_field=source_field,
            normalized_source=normalize_field_name(source_field),
            target_field=target_field,
            normalized_target=normalize_field_name(target_field),
            entity_kind=entity_kind,
        )
    )


# ---------------------------------------------------------------------------
# Builder
# ---------------------------------------------------------------------------


def _accepted_score(candidate: MatchCandidate, tolerate_typos: bool) -> float:
    """
    Score of a candidate the builder may claim, or 0.0 when neither path
    clears its threshold.
    """

    score = score_candidate(candidate)
    accepted = score if score > AUTO_MAP_THRESHOLD else 0.0
    if tolerate_typos:
        fuzzy = fuzzy_similarity(candidate.source_field, candidate.target_field)
        if fuzzy > FUZZY_MATCH_THRESHOLD:
            accepted = max(accepted, fuzzy)
    return accepted


def build_mapping(
    source_fields: Sequence[str],
    target_fields: Sequence[str],
    entity_kind: str,
    *,
    tolerate_typos: bool = False,
) -> FieldMapping:
    """
    Propose a mapping for every source field that has a confident match.

    Sources are visited in order and each takes its single best unclaimed
    target when the score exceeds `AUTO_MAP_THRESHOLD`. With
    `tolerate_typos`, an edit-distance ratio above `FUZZY_MATCH_THRESHOLD`
    also qualifies. A claimed target is never offered to a later source, so
    the result is injective.
    """

    _ensure_entity_kind(entity_kind)
    normalized_targets = {target: normalize_field_name(target) for target in target_fields}
    claimed: set[str] = set()
    mapping: FieldMapping = {}

    for source_field in source_fields:
        if not source_field or source_field in mapping:
            continue
        normalized_source = normalize_field_name(source_field)

        best_target = ""
        best_score = 0.0
        for target_field in target_fields:
            if target_field in claimed:
                continue
            score = _accepted_score(
                MatchCandidate(
                    source_field=source_field,
                    normalized_source=normalized_source,
                    target_field=target_field,
                    normalized_target=normalized_targets[target_field],
                    entity_kind=entity_kind,
                ),
                tolerate_typos,
            )
            if score > best_score:
                best_target = target_field
                best_score = score

        if best_target:
            mapping[source_field] = best_target
            claimed.add(best_target)
            logger.debug(
                "Auto-mapped %s -> %s (score %.2f)", source_field, best_target, best_score
            )

    return mapping


def used_targets(field_mapping: Mapping[str, str]) -> set[str]:
    return {target for target in field_mapping.values() if target}


def remap(
    source_fields: Sequence[str],
    target_fields: Sequence[str],
    entity_kind: str,
    current_mapping: Mapping[str, str],
) -> FieldMapping:
    """
    Propose mappings only for sources and targets the current mapping leaves
    free. Confirmed entries are never touched. Misspelled headers are matched
    through the edit-distance path.
    """

    taken = used_targets(current_mapping)
    unmapped_sources = [source for source in source_fields if not current_mapping.get(source)]
    free_targets = [target for target in target_fields if target not in taken]
    return build_mapping(unmapped_sources, free_targets, entity_kind, tolerate_typos=True)


def suggest_alternatives(
    source_field: str,
    field_mapping: Mapping[str, str],
    target_fields: Sequence[str],
    entity_kind: str = CUSTOMERS,
) -> list[FieldSuggestion]:
    """
    Rank up to `SUGGESTION_LIMIT` free targets for one source column.
    """

    taken = used_targets(field_mapping)
    own_target = field_mapping.get(source_field) or ""
    suggestions = []
    for target_field in target_fields:
        if target_field == own_target or target_field in taken:
            continue
        scores = [0.0]
        primary = _score_pair(source_field, target_field, entity_kind)
        if primary > SUGGESTION_THRESHOLD:
            scores.append(primary)
        fuzzy = fuzzy_similarity(source_field, target_field)
        if fuzzy > FUZZY_MATCH_THRESHOLD:
            scores.append(fuzzy)
        score = max(scores)
        if score:
            suggestions.append(FieldSuggestion(field=target_field, score=score))

    # sorted() is stable, so equal scores keep target order
    suggestions = sorted(suggestions, key=lambda suggestion: suggestion.score, reverse=True)
    return suggestions[:SUGGESTION_LIMIT]


def missing_important_fields(
    entity_kind: str,
    field_mapping: Mapping[str, str],
    target_fields: Sequence[str] | None = None,
) -> list[str]:
    """
    Important targets of the entity kind that no source maps to yet.

    Only targets that exist are reported, so `field_Kommentar` counts once the
    ticket type defines a Kommentar field. `target_fields` defaults to the
    fixed targets of the entity kind.
    """

    if target_fields is None:
        target_fields = target_fields_for(entity_kind)
    available = set(target_fields)
    taken = used_targets(field_mapping)
    return [
        field
        for field in IMPORTANT_TARGET_FIELDS.get(_ensure_entity_kind(entity_kind), ())
        if field in available and field not in taken
    ]


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


class FieldMappingSession:
    """
    Mutable mapping state for one import confirmation.
    """

    def __init__(
        self,
        *,
        source_fields: Sequence[str],
        target_fields: Sequence[str],
        entity_kind: str,
        initial_mapping: Mapping[str, str] | None = None,
    ) -> None:
        self.source_fields = tuple(source_fields)
        self.target_fields = tuple(target_fields)
        self.entity_kind = _ensure_entity_kind(entity_kind)
        self._mapping: FieldMapping = dict(initial_mapping or {})

    @classmethod
    def auto(
        cls,
        *,
        source_fields: Sequence[str],
        target_fields: Sequence[str],
        entity_kind: str,
    ) -> FieldMappingSession:
        return cls(
            source_fields=source_fields,
            target_fields=target_fields,
            entity_kind=entity_kind,
            initial_mapping=build_mapping(source_fields, target_fields, entity_kind),
        )

    @property
    def mapping(self) -> FieldMapping:
        return dict(self._mapping)

    def set(self, source_field: str, target_field: str) -> None:
        """
        Assign a target (or "" to ignore the column). Last write wins.
        """

        self._mapping[source_field] = target_field

    def clear(self, source_field: str | None = None) -> None:
        if source_field is None:
            for key in list(self._mapping):
                self._mapping[key] = ""
            return
        self._mapping[source_field] = ""

    def auto_map_remaining(self) -> FieldMapping:
        """
        Fill unmapped sources from free targets and return what was added.
        """

        added = remap(self.source_fields, self.target_fields, self.entity_kind, self._mapping)
        for source_field, target_field in added.items():
            if target_field:
                self._mapping[source_field] = target_field
        return added

    def suggestions(self) -> dict[str, list[FieldSuggestion]]:
        result: dict[str, list[FieldSuggestion]] = {}
        for source_field in self.source_fields:
            ranked = suggest_alternatives(
                source_field,
                self._mapping,
                self.target_fields,
                self.entity_kind,
            )
            if ranked:
                result[source_field] = ranked
        return result

    def stats(self) -> dict[str, object]:
        total = len(self.source_fields)
        mapped = len([value for value in self._mapping.values() if value])
        return {
            "total": total,
            "mapped": mapped,
            "percent": round(mapped / total * 100) if total else 0,
            "missing_important_fields": missing_important_fields(
                self.entity_kind, self._mapping, self.target_fields
            ),
        }
