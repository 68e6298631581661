"""
app/validators package marker.
"""

from app.validators.import_validator import (
    ImportValidationError,
    ValidationOutcome,
    ensure_valid_import,
    validate_import,
)

__all__ = [
    "ImportValidationError",
    "ValidationOutcome",
    "ensure_valid_import",
    "validate_import",
]
