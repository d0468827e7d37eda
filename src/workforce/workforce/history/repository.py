from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, Sequence

from ..core.enums import ImportFileType, UploadStatus
from .model import UploadHistory


class UploadHistoryRepository(Protocol):
    """Storage for ``upload_history`` and its ``import_logs`` mirror."""

    def create_upload(self, *, batch_id: str, filename: str, uploaded_at: datetime) -> int:
        raise NotImplementedError

    def update_upload_progress(
        self, *, batch_id: str, total_records: int, processed_records: int, error_records: int
    ) -> bool:
        raise NotImplementedError

    def finalize_upload(
        self,
        *,
        batch_id: str,
        status: UploadStatus,
        total_records: int,
        processed_records: int,
        error_records: int,
        errors: List[Dict[str, Any]],
        summary: Dict[str, Any],
        completed_at: datetime,
    ) -> bool:
        raise NotImplementedError

    def create_import_log(
        self,
        *,
        batch_id: str,
        file_name: str,
        file_type: ImportFileType,
        created_at: datetime,
    ) -> int:
        raise NotImplementedError

    def update_import_log_progress(
        self, *, import_id: int, total_records: int, processed_records: int, error_records: int
    ) -> bool:
        raise NotImplementedError

    def finalize_import_log(
        self,
        *,
        import_id: int,
        status: UploadStatus,
        total_records: int,
        processed_records: int,
        error_records: int,
        errors: List[Dict[str, Any]],
        summary: Dict[str, Any],
        completed_at: datetime,
    ) -> bool:
        raise NotImplementedError

    def list_uploads(self, *, limit: int) -> Sequence[UploadHistory]:
        raise NotImplementedError

    def get_upload_by_batch(self, batch_id: str) -> Optional[UploadHistory]:
        raise NotImplementedError

    def list_processing_before(self, cutoff: datetime) -> Sequence[UploadHistory]:
        raise NotImplementedError

    def delete_upload(self, upload_id: int) -> bool:
        raise NotImplementedError

    def delete_batch(self, batch_id: str) -> Optional[int]:
        """Remove a batch's attendance rows and history together.

        Returns the number of attendance rows deleted, ``None`` if the batch is unknown.
        """

        raise NotImplementedError

    def fail_import_logs(self, *, batch_id: str, completed_at: datetime) -> int:
        """Close any PROCESSING import log of an abandoned batch as FAILED."""

        raise NotImplementedError
