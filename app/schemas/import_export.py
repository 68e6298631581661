"""
app/schemas/import_export.py

Request and response schemas for the import and export endpoints.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class FieldSuggestionResponse(BaseModel):
    field: str
    score: float = Field(..., ge=0.0, le=1.0)


class ImportPreviewResponse(BaseModel):
    """
    Parsed upload plus the proposed field mapping.
    """

    file_type: str
    entity: str
    headers: list[str]
    total_rows: int = Field(..., ge=0)
    preview_rows: list[dict[str, Any]] = Field(default_factory=list)
    rows: list[dict[str, Any]] = Field(default_factory=list)
    target_fields: list[str]
    mapping: dict[str, str] = Field(default_factory=dict)
    suggestions: dict[str, list[FieldSuggestionResponse]] = Field(default_factory=dict)
    missing_important_fields: list[str] = Field(default_factory=list)


class ImportOptionsRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    skip_existing: bool = Field(default=True, alias="skipExisting")
    update_existing: bool = Field(default=False, alias="updateExisting")


class ImportRequest(BaseModel):
    """
    Confirmed import: raw rows plus the user's final mapping.
    """

    rows: list[dict[str, Any]] = Field(default_factory=list)
    mapping: dict[str, str] = Field(default_factory=dict)
    options: ImportOptionsRequest = Field(default_factory=ImportOptionsRequest)


class ImportSummaryResponse(BaseModel):
    message: str
    total: int = Field(..., ge=0)
    success: int = Field(..., ge=0)
    failed: int = Field(..., ge=0)
    errors: list[str] = Field(default_factory=list)
    cancelled: bool = False
    error_categories: dict[str, list[str]] = Field(default_factory=dict)
