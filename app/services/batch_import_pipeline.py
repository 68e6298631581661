"""
app/services/batch_import_pipeline.py

Sequential batch import with per-batch fault isolation.

Rows are cut into fixed-size windows and handed to a persistence callable one
window at a time. A window that raises is charged as failed in full and the
run moves on. Totals always satisfy `success + failed == total`.
"""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import replace
from typing import Any, Callable, Mapping, Sequence

from app.domain.import_export import BatchOutcome, BatchWindow, ImportResult, ImportSummary, RowResult
from app.logging_utils import log_event

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 10
CANCELLED_MESSAGE = "Importen avbröts"
UNKNOWN_ERROR_MESSAGE = "Okänt fel"

PersistBatch = Callable[[list[Mapping[str, Any]], BatchWindow], BatchOutcome]
ProgressCallback = Callable[[int], None]


class CancellationToken:
    """
    Cooperative cancellation flag checked between batches.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


def plan_windows(total: int, batch_size: int) -> list[BatchWindow]:
    """
    Cut `total` rows into consecutive windows of at most `batch_size` rows.
    """

    size = max(1, batch_size)
    count = math.ceil(total / size) if total > 0 else 0
    return [
        BatchWindow(index=index, start=index * size, end=min(total, (index + 1) * size))
        for index in range(count)
    ]


def _progress(completed: int, total_batches: int) -> int:
    if total_batches <= 0:
        return 100
    return round(completed / total_batches * 100)


class BatchImportPipeline:
    """
    Drives persistence over batch windows and accumulates an import summary.
    """

    def __init__(self, *, max_errors: int | None = None, log_row_errors: bool = True) -> None:
        self._max_errors = max_errors if max_errors is None else max(1, max_errors)
        self._log_row_errors = log_row_errors

    def run_import(
        self,
        rows: Sequence[Mapping[str, Any] | RowResult],
        persist_batch: PersistBatch,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        progress_callback: ProgressCallback | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> ImportSummary:
        """
        Persist `rows` batch by batch and return the final totals.

        Items may be plain payloads or `RowResult`s. Failed `RowResult`s are
        counted as failed and never reach `persist_batch`.
        """

        result = ImportResult(total=len(rows))
        windows = plan_windows(len(rows), batch_size)
        cancelled = False

        log_event(
            logger,
            logging.INFO,
            "import.started",
            total_rows=len(rows),
            batch_size=max(1, batch_size),
            batches=len(windows),
        )

        for window in windows:
            if cancel_token is not None and cancel_token.cancelled:
                remaining = len(rows) - window.start
                result.add_failure(CANCELLED_MESSAGE, count=remaining)
                cancelled = True
                log_event(
                    logger,
                    logging.WARNING,
                    "import.cancelled",
                    batch=window.number,
                    remaining_rows=remaining,
                )
                break

            self._report(progress_callback, _progress(window.index, len(windows)))
            self._run_window(rows, window, persist_batch, result)
            self._report(progress_callback, _progress(window.index + 1, len(windows)))

        summary = result.snapshot()
        if self._max_errors is not None and len(summary.errors) > self._max_errors:
            summary = ImportSummary(
                total=summary.total,
                success=summary.success,
                failed=summary.failed,
                errors=summary.errors[: self._max_errors],
            )
        if cancelled:
            summary = ImportSummary(
                total=summary.total,
                success=summary.success,
                failed=summary.failed,
                errors=summary.errors,
                cancelled=True,
            )

        log_event(
            logger,
            logging.INFO,
            "import.completed",
            total=summary.total,
            success=summary.success,
            failed=summary.failed,
            errors=len(summary.errors),
            cancelled=summary.cancelled,
        )
        return summary

    def _run_window(
        self,
        rows: Sequence[Mapping[str, Any] | RowResult],
        window: BatchWindow,
        persist_batch: PersistBatch,
        result: ImportResult,
    ) -> None:
        payloads: list[Mapping[str, Any]] = []
        row_numbers: list[int] = []
        for position, item in enumerate(rows[window.start : window.end], start=window.start + 1):
            if isinstance(item, RowResult):
                if item.ok and item.payload is not None:
                    payloads.append(item.payload)
                    row_numbers.append(item.row_number)
                else:
                    message = str(item.error) if item.error else UNKNOWN_ERROR_MESSAGE
                    result.add_failure(message)
                    if self._log_row_errors:
                        logger.info("Skipping row that failed transformation: %s", message)
                continue
            payloads.append(item)
            row_numbers.append(position)

        if not payloads:
            return
        window = replace(window, row_numbers=tuple(row_numbers))

        try:
            outcome = persist_batch(payloads, window)
        except Exception as exc:  # noqa: BLE001
            message = str(exc) or UNKNOWN_ERROR_MESSAGE
            result.add_failure(f"Batch {window.number}: {message}", count=len(payloads))
            log_event(
                logger,
                logging.ERROR,
                "import.batch_failed",
                batch=window.number,
                rows=len(payloads),
                error=message,
            )
            return

        self._accumulate(outcome, len(payloads), window, result)

    def _accumulate(
        self,
        outcome: BatchOutcome,
        submitted: int,
        window: BatchWindow,
        result: ImportResult,
    ) -> None:
        success = max(0, min(outcome.success, submitted))
        failed = max(0, min(outcome.failed, submitted - success))
        result.add_success(success)
        result.add_failure(count=failed)
        result.add_errors(list(outcome.errors))

        shortfall = submitted - success - failed
        if shortfall > 0:
            result.add_failure(count=shortfall)
            logger.warning(
                "Batch %s reported %s of %s rows; charging %s as failed",
                window.number,
                outcome.success + outcome.failed,
                submitted,
                shortfall,
            )

        if self._log_row_errors:
            for error in outcome.errors:
                logger.info("Batch %s row error: %s", window.number, error)

        log_event(
            logger,
            logging.DEBUG,
            "import.batch_completed",
            batch=window.number,
            success=success,
            failed=submitted - success,
        )

    @staticmethod
    def _report(progress_callback: ProgressCallback | None, percent: int) -> None:
        if progress_callback is None:
            return
        try:
            progress_callback(percent)
        except Exception:  # noqa: BLE001
            logger.exception("Progress callback failed at %s%%", percent)
