"""
app/mappers/field_normalizer.py

Canonical token normalization for import column names.

A column label is reduced to `[a-z0-9åäö]` and then passed through an ordered
chain of synonym rules (Swedish and English). Each rule rewrites the first
occurrence of one of its synonyms into a canonical token. Tokens emitted by a
rule, or already present in the label, are never rewritten again, which keeps
normalized output a fixed point of `normalize_field_name`.
"""

from __future__ import annotations

import re

DYNAMIC_FIELD_PREFIX = "field_"

_DISALLOWED_CHARS = re.compile(r"[^A-Za-z0-9åäöÅÄÖ]")

# Order matters: earlier rules may consume text a later rule would match.
# Inside a rule, longer synonyms are listed first.
NORMALIZATION_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"(?<!stam)(?:kundens|kunden|kund)"), "customer"),
    (re.compile(r"epostadress|epost|email|mail"), "email"),
    (re.compile(r"telefonnummer|mobilnummer|phonenumber|telefon|mobil|phone|(?<!ti)tel"), "phoneNumber"),
    (re.compile(r"(?<!first)(?<!last)(?<!för)(?<!for)(?<!efter)(?:namn|name)"), "name"),
    (re.compile(r"firstname|förnamn|fornamn|first"), "firstName"),
    (re.compile(r"efternamn|lastname|last"), "lastName"),
    (re.compile(r"address|adress"), "address"),
    (re.compile(r"postnummer|postalcode|zipcode|postnr|zip"), "postalCode"),
    (re.compile(r"stad|city|ort"), "city"),
    (re.compile(r"country|land"), "country"),
    (re.compile(r"födelsedatum|födelsedag|fodelsedag|dateofbirth|birthdate|birth"), "dateOfBirth"),
    (re.compile(r"nyhetsbrev|newsletter"), "newsletter"),
    (re.compile(r"stamkund|loyal|vip"), "loyal"),
    (re.compile(r"titel|title"), "title"),
    (re.compile(r"beskrivning|description"), "description"),
    (re.compile(r"status"), "status"),
    (re.compile(r"deadline|duedate|due"), "dueDate"),
    (re.compile(r"skidor|skida|ski"), "ski"),
    (re.compile(r"bindning|binding"), "binding"),
    (re.compile(r"sulmått|sulmatt|solelength"), "soleLength"),
    (re.compile(r"servicetype|servicetyp|tjänst"), "serviceType"),
    (re.compile(r"kommentar|comment"), "comment"),
    (re.compile(r"monteringspunkt|mountingpoint"), "mountingPoint"),
)

CANONICAL_TOKENS: tuple[str, ...] = tuple(token for _, token in NORMALIZATION_RULES)

_TOKEN_PATTERN = re.compile(
    "|".join(re.escape(token) for token in sorted(CANONICAL_TOKENS, key=len, reverse=True))
)

_Part = tuple[str, bool]


def _split_known_tokens(text: str) -> list[_Part]:
    """
    Split text into (segment, is_token) parts; free text is lower-cased.
    """

    parts: list[_Part] = []
    cursor = 0
    for match in _TOKEN_PATTERN.finditer(text):
        if match.start() > cursor:
            parts.append((text[cursor : match.start()].lower(), False))
        parts.append((match.group(0), True))
        cursor = match.end()
    if cursor < len(text):
        parts.append((text[cursor:].lower(), False))
    return parts


def _apply_rule(parts: list[_Part], pattern: re.Pattern[str], token: str) -> None:
    if any(is_token and segment == token for segment, is_token in parts):
        return

    for index, (segment, is_token) in enumerate(parts):
        if is_token:
            continue
        match = pattern.search(segment)
        if match is None:
            continue
        replacement = [
            part
            for part in (
                (segment[: match.start()], False),
                (token, True),
                (segment[match.end() :], False),
            )
            if part[0]
        ]
        parts[index : index + 1] = replacement
        return


def normalize_field_name(name: str) -> str:
    """
    Reduce a column label to a comparable canonical form.

    `field_`-prefixed names reference ticket-type fields and are only
    lower-cased, so they never collide with the fixed targets.
    """

    raw = str(name or "")
    if raw.lower().startswith(DYNAMIC_FIELD_PREFIX):
        return raw.lower()

    parts = _split_known_tokens(_DISALLOWED_CHARS.sub("", raw))
    for pattern, token in NORMALIZATION_RULES:
        _apply_rule(parts, pattern, token)
    return "".join(segment for segment, _ in parts)
