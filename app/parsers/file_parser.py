"""
app/parsers/file_parser.py

Turn uploaded CSV, Excel and JSON files into header lists and raw rows.
"""

from __future__ import annotations

import csv
import io
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Literal

from openpyxl import load_workbook

logger = logging.getLogger(__name__)

FileType = Literal["csv", "excel", "json"]

FILE_TYPES_BY_EXTENSION: dict[str, FileType] = {
    "csv": "csv",
    "xlsx": "excel",
    "xls": "excel",
    "json": "json",
}

_INTEGER = re.compile(r"^-?\d+$")
_DECIMAL = re.compile(r"^-?(?:\d+\.\d*|\.\d+|\d+)(?:[eE][-+]?\d+)?$")


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class FileParseError(ValueError):
    """
    Raised when file content cannot be read into rows.
    """

    def __init__(self, message: str, *, file_type: str | None = None) -> None:
        super().__init__(message)
        self.file_type = file_type

    def to_dict(self) -> dict[str, Any]:
        return {"message": str(self), "file_type": self.file_type}


class UnsupportedFileTypeError(FileParseError):
    """
    Raised when the file extension is not one of csv, xlsx, xls or json.
    """


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ParsedFile:
    file_type: FileType
    headers: list[str]
    rows: list[dict[str, Any]] = field(default_factory=list)


def detect_file_type(filename: str | None) -> FileType | None:
    """
    Map a filename's extension to a supported file type, or None.
    """

    if not filename or "." not in filename:
        return None
    extension = filename.rsplit(".", 1)[-1].strip().lower()
    return FILE_TYPES_BY_EXTENSION.get(extension)


def require_file_type(filename: str | None) -> FileType:
    file_type = detect_file_type(filename)
    if file_type is None:
        raise UnsupportedFileTypeError(
            "Filformatet stöds inte. Använd CSV, Excel eller JSON.",
            file_type=None,
        )
    return file_type


# ---------------------------------------------------------------------------
# CSV
# ---------------------------------------------------------------------------


def _type_csv_value(raw: str | None) -> Any:
    """
    Convert one CSV cell: empty → None, true/false → bool, numbers → int/float.
    """

    if raw is None or raw == "":
        return None
    if raw in {"true", "TRUE", "True"}:
        return True
    if raw in {"false", "FALSE", "False"}:
        return False
    candidate = raw.strip()
    digits = candidate.lstrip("-")
    if _INTEGER.match(candidate):
        # Leading zeros carry meaning (postal codes, customer numbers).
        if len(digits) > 1 and digits.startswith("0"):
            return raw
        return int(candidate)
    if _DECIMAL.match(candidate):
        try:
            return float(candidate)
        except ValueError:
            return raw
    return raw


def _parse_csv(content: bytes) -> ParsedFile:
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise FileParseError("CSV-filen måste vara UTF-8-kodad.", file_type="csv") from exc

    try:
        reader = csv.DictReader(io.StringIO(text, newline=""))
        headers = [header for header in (reader.fieldnames or []) if header is not None]
        rows: list[dict[str, Any]] = []
        for raw_row in reader:
            values = {key: raw_row.get(key) for key in headers}
            if all(value is None or not str(value).strip() for value in values.values()):
                continue
            rows.append({key: _type_csv_value(value) for key, value in values.items()})
    except csv.Error as exc:
        raise FileParseError(f"Ogiltigt CSV-format: {exc}", file_type="csv") from exc

    if not headers:
        raise FileParseError("CSV-filen saknar rubrikrad.", file_type="csv")
    return ParsedFile(file_type="csv", headers=headers, rows=rows)


# ---------------------------------------------------------------------------
# Excel
# ---------------------------------------------------------------------------


def _excel_headers(first_row: tuple[Any, ...]) -> list[str]:
    headers: list[str] = []
    for column_number, value in enumerate(first_row, start=1):
        text = "" if value is None else str(value).strip()
        headers.append(text or f"Column{column_number}")
    return headers


def _parse_excel(content: bytes) -> ParsedFile:
    try:
        workbook = load_workbook(io.BytesIO(content), data_only=True, read_only=True)
    except Exception as exc:  # noqa: BLE001
        raise FileParseError("Kunde inte läsa Excel-filen.", file_type="excel") from exc

    try:
        if not workbook.worksheets:
            raise FileParseError("Excel-filen innehåller inga arbetsblad.", file_type="excel")
        sheet = workbook.worksheets[0]
        row_iter = sheet.iter_rows(values_only=True)
        first_row = next(row_iter, None)
        if first_row is None:
            return ParsedFile(file_type="excel", headers=[], rows=[])

        headers = _excel_headers(first_row)
        rows: list[dict[str, Any]] = []
        for values in row_iter:
            row = {
                headers[index]: value
                for index, value in enumerate(values)
                if index < len(headers) and value is not None
            }
            if row:
                rows.append(row)
    finally:
        workbook.close()

    return ParsedFile(file_type="excel", headers=headers, rows=rows)


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------


def _parse_json(content: bytes) -> ParsedFile:
    try:
        data = json.loads(content.decode("utf-8-sig"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise FileParseError(f"Ogiltig JSON: {exc}", file_type="json") from exc

    if isinstance(data, dict):
        data = next((value for value in data.values() if isinstance(value, list)), None)
    if not isinstance(data, list):
        raise FileParseError("JSON-filen måste innehålla en lista med objekt.", file_type="json")

    rows = [dict(item) for item in data if isinstance(item, dict)]
    if len(rows) != len(data):
        logger.warning("Skipped %s non-object JSON entries", len(data) - len(rows))
    headers = list(rows[0].keys()) if rows else []
    return ParsedFile(file_type="json", headers=headers, rows=rows)


_PARSERS = {
    "csv": _parse_csv,
    "excel": _parse_excel,
    "json": _parse_json,
}


def parse_file(content: bytes, file_type: str) -> ParsedFile:
    """
    Parse file bytes of the given type. Raises `FileParseError`.
    """

    parser = _PARSERS.get(file_type)
    if parser is None:
        raise UnsupportedFileTypeError(f"Okänd filtyp: {file_type}", file_type=file_type)
    parsed = parser(content)
    logger.info(
        "Parsed %s file: %s columns, %s rows",
        file_type,
        len(parsed.headers),
        len(parsed.rows),
    )
    return parsed
