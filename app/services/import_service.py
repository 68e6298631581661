"""
app/services/import_service.py

Entry points for the import workflow: preview an uploaded file with an
automatic field mapping, then run a confirmed import through validation,
row transformation and the batch pipeline.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Mapping, Sequence

from sqlalchemy.orm import Session

from app.config import ImportSettings, get_import_settings
from app.domain.import_export import (
    CUSTOMERS,
    TICKETS,
    VALID_ENTITY_KINDS,
    FieldSuggestion,
    ImportOptions,
    ImportSummary,
)
from app.logging_utils import log_event
from app.mappers.field_mapping import FieldMappingSession, target_fields_for
from app.mappers.row_transformer import transform_rows
from app.parsers.file_parser import parse_file, require_file_type
from app.repositories.customer_import_repository import CustomerImportRepository
from app.repositories.ticket_import_repository import MESSAGE_NO_TICKET_TYPES, TicketImportRepository
from app.repositories.ticket_type_repository import TicketTypeRepository
from app.services.batch_import_pipeline import (
    BatchImportPipeline,
    CancellationToken,
    PersistBatch,
    ProgressCallback,
)
from app.services.ticket_type_catalog import TicketTypeCatalog, get_ticket_type_catalog
from app.validators.import_validator import ImportValidationError, ensure_valid_import

logger = logging.getLogger(__name__)

PREVIEW_ROW_COUNT = 5


@dataclass(frozen=True)
class ImportPreview:
    """
    Everything the mapping step needs after an upload.
    """

    file_type: str
    entity_kind: str
    headers: list[str]
    total_rows: int
    preview_rows: list[dict[str, Any]]
    rows: list[dict[str, Any]]
    target_fields: list[str]
    mapping: dict[str, str]
    suggestions: dict[str, list[FieldSuggestion]] = field(default_factory=dict)
    missing_important_fields: list[str] = field(default_factory=list)


def _entity_label(entity_kind: str) -> str:
    return "kunder" if entity_kind == CUSTOMERS else "ärenden"


def summary_message(summary: ImportSummary, entity_kind: str) -> str:
    if summary.cancelled:
        return f"Importen avbröts. {summary.success} av {summary.total} {_entity_label(entity_kind)} importerade."
    return f"Import slutförd. {summary.success} av {summary.total} {_entity_label(entity_kind)} importerade."


def failed_summary(total: int, message: str) -> ImportSummary:
    """
    Summary for an import rejected before any row ran.
    """

    return ImportSummary(total=total, success=0, failed=total, errors=(message,))


class ImportService:
    """
    Coordinates preview, validation, transformation and batch persistence.
    """

    def __init__(
        self,
        *,
        settings: ImportSettings,
        ticket_type_catalog: TicketTypeCatalog | None = None,
        pipeline: BatchImportPipeline | None = None,
    ) -> None:
        self._settings = settings
        self._ticket_type_catalog = ticket_type_catalog
        self._pipeline = pipeline or BatchImportPipeline(
            max_errors=settings.max_errors,
            log_row_errors=settings.log_row_errors,
        )

    @property
    def ticket_type_catalog(self) -> TicketTypeCatalog:
        if self._ticket_type_catalog is None:
            self._ticket_type_catalog = get_ticket_type_catalog()
        return self._ticket_type_catalog

    # ------------------------------------------------------------------
    # Preview
    # ------------------------------------------------------------------

    def preview(
        self,
        *,
        filename: str | None,
        content: bytes,
        entity_kind: str,
        store_id: int,
        ticket_type_id: int | None = None,
    ) -> ImportPreview:
        """
        Parse an upload and propose a mapping onto the entity's target fields.
        """

        file_type = require_file_type(filename)
        parsed = parse_file(content, file_type)

        definitions = ()
        if entity_kind == TICKETS:
            definitions = self.ticket_type_catalog.field_definitions(store_id, ticket_type_id)
        target_fields = target_fields_for(entity_kind, definitions)

        session = FieldMappingSession.auto(
            source_fields=parsed.headers,
            target_fields=target_fields,
            entity_kind=entity_kind,
        )
        stats = session.stats()
        log_event(
            logger,
            logging.INFO,
            "import.preview",
            store_id=store_id,
            entity_kind=entity_kind,
            file_type=file_type,
            rows=len(parsed.rows),
            mapped=stats["mapped"],
            columns=stats["total"],
        )
        return ImportPreview(
            file_type=file_type,
            entity_kind=entity_kind,
            headers=list(parsed.headers),
            total_rows=len(parsed.rows),
            preview_rows=parsed.rows[:PREVIEW_ROW_COUNT],
            rows=parsed.rows,
            target_fields=list(target_fields),
            mapping=session.mapping,
            suggestions=session.suggestions(),
            missing_important_fields=list(stats["missing_important_fields"]),
        )

    # ------------------------------------------------------------------
    # Import
    # ------------------------------------------------------------------

    def run_import(
        self,
        *,
        db: Session,
        store_id: int,
        entity_kind: str,
        rows: Sequence[Mapping[str, Any]],
        mapping: Mapping[str, str],
        options: ImportOptions | None = None,
        user_id: int | None = None,
        progress_callback: ProgressCallback | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> ImportSummary:
        """
        Validate, transform and persist `rows`.

        A structurally invalid import returns a summary with every row failed
        and a single explanatory error; nothing is written.
        """

        if entity_kind not in VALID_ENTITY_KINDS:
            raise ValueError(f"Unknown entity kind '{entity_kind}'.")

        try:
            ensure_valid_import(rows, mapping, entity_kind)
            if len(rows) > self._settings.max_rows:
                raise ImportValidationError(
                    message=f"Filen innehåller för många rader (max {self._settings.max_rows})",
                    entity_kind=entity_kind,
                )
            persist_batch = self._persistence_for(
                db=db,
                store_id=store_id,
                entity_kind=entity_kind,
                options=options or ImportOptions(),
                user_id=user_id,
            )
        except ImportValidationError as exc:
            log_event(
                logger,
                logging.WARNING,
                "import.rejected",
                store_id=store_id,
                entity_kind=entity_kind,
                rows=len(rows) if isinstance(rows, Sequence) else 0,
                reason=exc.message,
            )
            return failed_summary(len(rows) if isinstance(rows, Sequence) else 0, exc.message)

        row_results = transform_rows(rows, mapping, entity_kind)
        return self._pipeline.run_import(
            row_results,
            persist_batch,
            batch_size=self._settings.batch_size,
            progress_callback=progress_callback,
            cancel_token=cancel_token,
        )

    def _persistence_for(
        self,
        *,
        db: Session,
        store_id: int,
        entity_kind: str,
        options: ImportOptions,
        user_id: int | None,
    ) -> PersistBatch:
        if entity_kind == CUSTOMERS:
            return CustomerImportRepository(db, store_id=store_id, options=options).persist_batch

        ticket_types = self.ticket_type_catalog.ticket_types(store_id)
        if not ticket_types:
            raise ImportValidationError(message=MESSAGE_NO_TICKET_TYPES, entity_kind=entity_kind)
        return TicketImportRepository(
            db,
            store_id=store_id,
            ticket_types=ticket_types,
            custom_status_ids=TicketTypeRepository(db).custom_status_ids(store_id),
            user_id=user_id,
        ).persist_batch


@lru_cache(maxsize=1)
def get_import_service() -> ImportService:
    return ImportService(settings=get_import_settings())
