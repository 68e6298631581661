"""
app/api/routers/export_router.py

Customer and ticket export endpoint.

GET /export

Query parameters
----------------
type              : "customers" | "tickets" | "all"  (default: "customers")
format            : "json" | "csv" | "excel"        (default: "json")
include_relations : add ticket counts, message stats and assignee  (default: true)
limit             : max rows per entity, capped by EXPORT_MAX_LIMIT

The body is returned as a file download. Flattening and rendering live in
ExportService; the router only handles HTTP plumbing.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.api.dependencies import get_store_id
from app.services.export_service import (
    ExportFormatError,
    ExportService,
    RenderedExport,
    get_export_service,
)
from db.session import get_db

logger = logging.getLogger(__name__)

router = APIRouter(tags=["export"])


@router.get("/export", summary="Export customers and tickets")
def export_data(
    export_type: str = Query(
        default="customers",
        alias="type",
        description='Entities to export: "customers", "tickets" or "all".',
    ),
    export_format: str = Query(
        default="json",
        alias="format",
        description='Output format: "json", "csv" or "excel".',
    ),
    include_relations: bool = Query(default=True),
    limit: str | None = Query(default=None, description="Maximum number of rows per entity."),
    store_id: int = Depends(get_store_id),
    db: Session = Depends(get_db),
    service: ExportService = Depends(get_export_service),
) -> Response:
    try:
        rendered: RenderedExport = service.export(
            db=db,
            store_id=store_id,
            export_type=export_type,
            export_format=export_format,
            include_relations=include_relations,
            limit=limit,
        )
    except ExportFormatError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.to_dict()) from exc
    except Exception as exc:  # noqa: BLE001
        logger.exception("Export failed store_id=%s type=%r format=%r", store_id, export_type, export_format)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Export failed; see server logs for details.",
        ) from exc

    logger.info(
        "Export store_id=%s type=%r format=%r bytes=%d",
        store_id,
        export_type,
        export_format,
        len(rendered.content),
    )
    return Response(
        content=rendered.content,
        media_type=rendered.media_type,
        headers={"Content-Disposition": f'attachment; filename="{rendered.filename}"'},
    )
