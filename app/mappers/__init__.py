"""
app/mappers package marker.
"""

from app.mappers.date_normalizer import date_part, parse_date, parse_datetime
from app.mappers.field_mapping import (
    FieldMappingSession,
    build_mapping,
    remap,
    suggest_alternatives,
    target_fields_for,
)
from app.mappers.field_normalizer import normalize_field_name
from app.mappers.field_similarity import similarity
from app.mappers.row_transformer import map_customer_row, map_ticket_row, transform_rows
from app.mappers.ticket_status import normalize_status, resolve_status

__all__ = [
    "FieldMappingSession",
    "build_mapping",
    "date_part",
    "map_customer_row",
    "map_ticket_row",
    "normalize_field_name",
    "normalize_status",
    "parse_date",
    "parse_datetime",
    "remap",
    "resolve_status",
    "similarity",
    "suggest_alternatives",
    "target_fields_for",
    "transform_rows",
]
