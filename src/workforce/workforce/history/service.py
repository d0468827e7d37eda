from __future__ import annotations

import logging
import time
import uuid
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Sequence

from ..common.datetime_utils import now_local
from ..core.constants import DEFAULT_HISTORY_LIMIT, DEFAULT_STALE_UPLOAD_MINUTES
from ..core.enums import ImportFileType, UploadStatus
from ..core.exceptions import NotFoundError, ValidationError
from ..ingest.model import RowError
from .model import UploadHistory
from .repository import UploadHistoryRepository

logger = logging.getLogger(__name__)


def new_batch_id() -> str:
    return f"batch_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


def terminal_status(total: int, processed: int, errors: int) -> UploadStatus:
    """Final status of an upload from its counters.

    COMPLETED needs zero errors and every row persisted; FAILED means nothing
    was persisted; anything in between is PARTIALLY_COMPLETED.
    """

    if errors == 0 and processed >= total:
        return UploadStatus.COMPLETED
    if processed == 0:
        return UploadStatus.FAILED
    return UploadStatus.PARTIALLY_COMPLETED


def success_rate(total: int, processed: int) -> float:
    return round(processed * 100.0 / total, 2) if total else 0.0


def upload_summary(*, filename: str, uploaded_at: datetime, processed_at: datetime, total: int, processed: int) -> dict:
    return {
        "fileName": filename,
        "uploadDate": uploaded_at.isoformat(),
        "processedAt": processed_at.isoformat(),
        "successRate": success_rate(total, processed),
    }


def import_log_summary(*, total: int, processed: int, errors: int, warnings: int) -> dict:
    return {"totalRows": total, "processed": processed, "errors": errors, "warnings": warnings}


class UploadTracker:
    """Progress handle for one upload; written once at start and once at the end."""

    def __init__(
        self,
        repo: UploadHistoryRepository,
        *,
        batch_id: str,
        upload_id: int,
        import_id: int,
        filename: str,
        started_at: datetime,
        clock: Callable[[], datetime] = now_local,
    ):
        self._repo = repo
        self.batch_id = batch_id
        self.upload_id = upload_id
        self.import_id = import_id
        self.filename = filename
        self.started_at = started_at
        self._clock = clock
        self.final_status: Optional[UploadStatus] = None

    @property
    def finished(self) -> bool:
        return self.final_status is not None

    def progress(self, *, total: int, processed: int, errors: int) -> None:
        if self.finished:
            return
        self._repo.update_upload_progress(
            batch_id=self.batch_id, total_records=total, processed_records=processed, error_records=errors
        )
        self._repo.update_import_log_progress(
            import_id=self.import_id, total_records=total, processed_records=processed, error_records=errors
        )

    def finalize(
        self,
        *,
        total: int,
        processed: int,
        errors: Sequence[RowError],
        warnings: int = 0,
        status: Optional[UploadStatus] = None,
    ) -> UploadStatus:
        if self.finished:
            raise ValidationError(f"Upload {self.batch_id} is already {self.final_status.value}")

        error_count = len(errors)
        final = status or terminal_status(total, processed, error_count)
        payload = [e.to_dict() for e in errors]
        completed_at = self._clock()

        self._repo.finalize_upload(
            batch_id=self.batch_id,
            status=final,
            total_records=total,
            processed_records=processed,
            error_records=error_count,
            errors=payload,
            summary=upload_summary(
                filename=self.filename,
                uploaded_at=self.started_at,
                processed_at=completed_at,
                total=total,
                processed=processed,
            ),
            completed_at=completed_at,
        )
        self._repo.finalize_import_log(
            import_id=self.import_id,
            status=final,
            total_records=total,
            processed_records=processed,
            error_records=error_count,
            errors=payload,
            summary=import_log_summary(total=total, processed=processed, errors=error_count, warnings=warnings),
            completed_at=completed_at,
        )
        self.final_status = final
        logger.info(
            "Upload %s finished as %s: %d/%d processed, %d errors",
            self.batch_id,
            final.value,
            processed,
            total,
            error_count,
        )
        return final

    def fail(self, message: str, *, total: int = 0, processed: int = 0) -> UploadStatus:
        """Close an upload that aborted mid-flight."""
        return self.finalize(
            total=total,
            processed=processed,
            errors=[RowError(row=0, error=message)],
            status=UploadStatus.FAILED,
        )


class UploadHistoryService:
    def __init__(
        self,
        repo: UploadHistoryRepository,
        *,
        clock: Callable[[], datetime] = now_local,
        batch_id_factory: Callable[[], str] = new_batch_id,
    ):
        self._repo = repo
        self._clock = clock
        self._batch_id_factory = batch_id_factory

    def start(self, *, filename: str, file_type: ImportFileType) -> UploadTracker:
        batch_id = self._batch_id_factory()
        started = self._clock()
        upload_id = self._repo.create_upload(batch_id=batch_id, filename=filename, uploaded_at=started)
        import_id = self._repo.create_import_log(
            batch_id=batch_id, file_name=filename, file_type=file_type, created_at=started
        )
        logger.info("Upload %s started for %s (%s)", batch_id, filename, file_type.value)
        return UploadTracker(
            self._repo,
            batch_id=batch_id,
            upload_id=upload_id,
            import_id=import_id,
            filename=filename,
            started_at=started,
            clock=self._clock,
        )

    def list_recent(self, *, limit: int = DEFAULT_HISTORY_LIMIT) -> List[UploadHistory]:
        return list(self._repo.list_uploads(limit=limit))

    def get(self, batch_id: str) -> UploadHistory:
        upload = self._repo.get_upload_by_batch((batch_id or "").strip())
        if not upload:
            raise NotFoundError(f"Upload not found for batch: {batch_id}")
        return upload

    def delete_history(self, upload_id: int) -> None:
        if not self._repo.delete_upload(int(upload_id)):
            raise NotFoundError(f"Upload history not found: {upload_id}")

    def delete_batch(self, batch_id: str) -> int:
        """Remove an upload together with the attendance rows it wrote."""
        batch_id = (batch_id or "").strip()
        if not batch_id:
            raise ValidationError("batchId is required")
        deleted = self._repo.delete_batch(batch_id)
        if deleted is None:
            raise NotFoundError(f"Upload not found for batch: {batch_id}")
        logger.info("Deleted batch %s (%d attendance records)", batch_id, deleted)
        return deleted

    def reconcile_stale(self, *, older_than_minutes: int = DEFAULT_STALE_UPLOAD_MINUTES) -> int:
        """Fail PROCESSING uploads left behind by a crashed or killed worker."""
        now = self._clock()
        cutoff = now - timedelta(minutes=int(older_than_minutes))
        stale = self._repo.list_processing_before(cutoff)
        for upload in stale:
            message = f"Upload abandoned while processing (started {upload.uploaded_at.isoformat()})"
            self._repo.finalize_upload(
                batch_id=upload.batch_id,
                status=UploadStatus.FAILED,
                total_records=upload.total_records,
                processed_records=upload.processed_records,
                error_records=upload.error_records,
                errors=list(upload.errors) + [RowError(row=0, error=message).to_dict()],
                summary=upload_summary(
                    filename=upload.filename,
                    uploaded_at=upload.uploaded_at,
                    processed_at=now,
                    total=upload.total_records,
                    processed=upload.processed_records,
                ),
                completed_at=now,
            )
            self._repo.fail_import_logs(batch_id=upload.batch_id, completed_at=now)
            logger.warning("Marked stale upload %s as FAILED", upload.batch_id)
        return len(stale)
