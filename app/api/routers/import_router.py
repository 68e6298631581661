"""
app/api/routers/import_router.py

Import HTTP endpoints.

POST /import/preview   upload a CSV, Excel or JSON file and get the proposed
                       field mapping plus the parsed rows
POST /import/{entity}  run a confirmed import of parsed rows with the final
                       mapping and return the summary
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, UploadFile, status
from sqlalchemy.orm import Session

from app.api.dependencies import get_import_upload, get_store_id, get_user_id
from app.domain.import_export import VALID_ENTITY_KINDS, ImportOptions
from app.parsers.file_parser import FileParseError, UnsupportedFileTypeError
from app.schemas.import_export import (
    FieldSuggestionResponse,
    ImportPreviewResponse,
    ImportRequest,
    ImportSummaryResponse,
)
from app.services.error_categories import categorize_errors
from app.services.import_service import ImportService, get_import_service, summary_message
from db.session import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/import", tags=["import"])


def _require_entity(entity: str) -> str:
    if entity not in VALID_ENTITY_KINDS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid entity {entity!r}. Must be one of: {sorted(VALID_ENTITY_KINDS)}.",
        )
    return entity


@router.post("/preview", response_model=ImportPreviewResponse)
def preview_import(
    file: UploadFile = Depends(get_import_upload),
    entity: str = Query(default="customers", description='Target entity: "customers" or "tickets".'),
    ticket_type_id: int | None = Query(default=None, description="Ticket type whose fields become targets."),
    store_id: int = Depends(get_store_id),
    import_service: ImportService = Depends(get_import_service),
) -> ImportPreviewResponse:
    """
    Parse an upload and propose a mapping of its columns onto the entity's fields.
    """

    entity_kind = _require_entity(entity)
    try:
        content = file.file.read()
        preview = import_service.preview(
            filename=file.filename,
            content=content,
            entity_kind=entity_kind,
            store_id=store_id,
            ticket_type_id=ticket_type_id,
        )
    except UnsupportedFileTypeError as exc:
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail=exc.to_dict(),
        ) from exc
    except FileParseError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=exc.to_dict(),
        ) from exc
    except Exception as exc:  # noqa: BLE001
        logger.exception("Import preview failed store_id=%s file=%r", store_id, file.filename)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Preview failed; see server logs for details.",
        ) from exc
    finally:
        file.file.close()

    return ImportPreviewResponse(
        file_type=preview.file_type,
        entity=preview.entity_kind,
        headers=preview.headers,
        total_rows=preview.total_rows,
        preview_rows=preview.preview_rows,
        rows=preview.rows,
        target_fields=preview.target_fields,
        mapping=preview.mapping,
        suggestions={
            source: [FieldSuggestionResponse(field=item.field, score=item.score) for item in items]
            for source, items in preview.suggestions.items()
        },
        missing_important_fields=preview.missing_important_fields,
    )


@router.post("/{entity}", response_model=ImportSummaryResponse)
def run_import(
    entity: str,
    payload: ImportRequest,
    store_id: int = Depends(get_store_id),
    user_id: int | None = Depends(get_user_id),
    db: Session = Depends(get_db),
    import_service: ImportService = Depends(get_import_service),
) -> ImportSummaryResponse:
    """
    Import already-parsed rows using the confirmed field mapping.
    """

    entity_kind = _require_entity(entity)
    options = ImportOptions(
        skip_existing=payload.options.skip_existing,
        update_existing=payload.options.update_existing,
    )
    try:
        summary = import_service.run_import(
            db=db,
            store_id=store_id,
            entity_kind=entity_kind,
            rows=payload.rows,
            mapping=payload.mapping,
            options=options,
            user_id=user_id,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except Exception as exc:  # noqa: BLE001
        db.rollback()
        logger.exception("Import failed store_id=%s entity=%s rows=%d", store_id, entity_kind, len(payload.rows))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Import failed; see server logs for details.",
        ) from exc

    logger.info(
        "Import finished store_id=%s entity=%s total=%d success=%d failed=%d",
        store_id,
        entity_kind,
        summary.total,
        summary.success,
        summary.failed,
    )
    return ImportSummaryResponse(
        message=summary_message(summary, entity_kind),
        total=summary.total,
        success=summary.success,
        failed=summary.failed,
        errors=list(summary.errors),
        cancelled=summary.cancelled,
        error_categories=categorize_errors(summary.errors),
    )
