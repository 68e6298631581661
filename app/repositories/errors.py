"""
app/repositories/errors.py

Repository-layer exceptions for import persistence.
"""

from __future__ import annotations


class ImportRepositoryError(Exception):
    """Base exception for import persistence failures."""


class RowRejected(ImportRepositoryError):
    """Raised inside a row's SAVEPOINT to reject that row with a message."""
