"""
app/api/dependencies.py

Shared FastAPI dependencies for request validation.
"""

from __future__ import annotations

from fastapi import File, Header, HTTPException, UploadFile, status

from app.parsers.file_parser import UnsupportedFileTypeError, require_file_type


def get_store_id(x_store_id: str | None = Header(default=None)) -> int:
    """
    Resolve the tenant from the `X-Store-Id` header.
    """

    raw_value = (x_store_id or "").strip()
    try:
        store_id = int(raw_value)
    except ValueError:
        store_id = 0
    if store_id <= 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Header X-Store-Id must be a positive integer.",
        )
    return store_id


def get_user_id(x_user_id: str | None = Header(default=None)) -> int | None:
    raw_value = (x_user_id or "").strip()
    if not raw_value:
        return None
    try:
        return int(raw_value)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Header X-User-Id must be an integer.",
        ) from exc


def get_import_upload(file: UploadFile = File(...)) -> UploadFile:
    """
    Validate that the uploaded file has a supported extension.
    """

    try:
        require_file_type(file.filename)
    except UnsupportedFileTypeError as exc:
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail=exc.to_dict(),
        ) from exc
    return file
