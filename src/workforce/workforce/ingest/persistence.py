from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from ..attendance.repository import AttendanceRepository
from ..core.constants import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_RETRY_BACKOFF_SECONDS,
    DEFAULT_RETRY_MAX_ATTEMPTS,
    DEFAULT_TX_MAX_WAIT_SECONDS,
    DEFAULT_TX_TIMEOUT_SECONDS,
)
from ..core.enums import UpsertOutcome
from ..core.exceptions import BatchTransactionError, PersistenceError
from ..employees.directory import EmployeeDirectory
from .model import ImportTally, NormalizedAttendanceRecord, RowError

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


@dataclass(frozen=True)
class RetryPolicy:
    """How often a failed batch transaction is re-run before its rows are failed."""

    max_attempts: int = DEFAULT_RETRY_MAX_ATTEMPTS
    backoff_seconds: float = DEFAULT_RETRY_BACKOFF_SECONDS
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False, compare=False)

    def delay(self, attempt: int) -> float:
        return max(0.0, float(self.backoff_seconds)) * (2 ** max(0, attempt - 1))


@dataclass
class _BatchOutcome:
    created: int = 0
    updated: int = 0
    errors: List[RowError] = field(default_factory=list)

    @property
    def persisted(self) -> int:
        return self.created + self.updated


def chunked(records: Sequence[NormalizedAttendanceRecord], size: int) -> List[Sequence[NormalizedAttendanceRecord]]:
    size = max(1, int(size))
    return [records[i : i + size] for i in range(0, len(records), size)]


class BatchPersistenceEngine:
    """Writes normalized records in fixed-size batches, one transaction per batch.

    Inside a batch a failing row is recorded and skipped. A batch whose
    transaction fails (after the configured retries) marks every one of its
    rows as failed; later batches still run. Counters reach the tally only
    after a batch has committed.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        max_wait_seconds: int = DEFAULT_TX_MAX_WAIT_SECONDS,
        timeout_seconds: int = DEFAULT_TX_TIMEOUT_SECONDS,
        retry: Optional[RetryPolicy] = None,
    ):
        self._attendance = attendance
        self._batch_size = max(1, int(batch_size))
        self._max_wait_seconds = int(max_wait_seconds)
        self._timeout_seconds = int(timeout_seconds)
        self._retry = retry or RetryPolicy()

    @property
    def batch_size(self) -> int:
        return self._batch_size

    def persist(
        self,
        records: Sequence[NormalizedAttendanceRecord],
        directory: EmployeeDirectory,
        tally: ImportTally,
        *,
        on_batch: Optional[ProgressCallback] = None,
    ) -> None:
        batches = chunked(records, self._batch_size)
        for index, batch in enumerate(batches, start=1):
            outcome = self._run_with_retry(batch, directory, index=index)
            tally.processed += outcome.persisted
            tally.created += outcome.created
            tally.updated += outcome.updated
            tally.errors.extend(outcome.errors)
            logger.info(
                "Completed batch %d/%d (%d persisted, %d errors)",
                index,
                len(batches),
                outcome.persisted,
                len(outcome.errors),
            )
            if on_batch:
                on_batch(index, len(batches))

    def _run_with_retry(
        self, batch: Sequence[NormalizedAttendanceRecord], directory: EmployeeDirectory, *, index: int
    ) -> _BatchOutcome:
        attempts = max(1, int(self._retry.max_attempts))
        for attempt in range(1, attempts + 1):
            try:
                return self._run_batch(batch, directory)
            except BatchTransactionError as e:
                if attempt >= attempts:
                    logger.error("Batch %d failed after %d attempt(s): %s", index, attempt, e)
                    return _BatchOutcome(
                        errors=[
                            RowError(row=r.row_number, error=f"Batch processing failed: {e}", data=r.to_dict())
                            for r in batch
                        ]
                    )
                delay = self._retry.delay(attempt)
                logger.warning("Batch %d attempt %d failed (%s); retrying in %.1fs", index, attempt, e, delay)
                self._retry.sleep(delay)
        raise AssertionError("unreachable")

    def _run_batch(self, batch: Sequence[NormalizedAttendanceRecord], directory: EmployeeDirectory) -> _BatchOutcome:
        outcome = _BatchOutcome()
        with self._attendance.batch(
            max_wait_seconds=self._max_wait_seconds, timeout_seconds=self._timeout_seconds
        ) as writer:
            for record in batch:
                employee = directory.lookup(record.employee_code)
                if employee is None:
                    outcome.errors.append(
                        RowError(
                            row=record.row_number,
                            error=f"Employee not found with code: {record.employee_code}",
                            data=record.to_dict(),
                        )
                    )
                    continue
                try:
                    result = writer.upsert(employee.employee_id, record)
                except BatchTransactionError:
                    raise
                except PersistenceError as e:
                    logger.warning("Row %d (%s) not saved: %s", record.row_number, record.employee_code, e)
                    outcome.errors.append(RowError(row=record.row_number, error=str(e), data=record.to_dict()))
                    continue
                if result is UpsertOutcome.CREATED:
                    outcome.created += 1
                else:
                    outcome.updated += 1
        return outcome
