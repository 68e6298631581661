"""
app/parsers package marker.
"""

from app.parsers.file_parser import (
    FileParseError,
    ParsedFile,
    UnsupportedFileTypeError,
    detect_file_type,
    parse_file,
    require_file_type,
)

__all__ = [
    "FileParseError",
    "ParsedFile",
    "UnsupportedFileTypeError",
    "detect_file_type",
    "parse_file",
    "require_file_type",
]
