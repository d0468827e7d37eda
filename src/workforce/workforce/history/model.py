from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..core.enums import ImportFileType, UploadStatus


def _iso(v: Optional[datetime]) -> Optional[str]:
    return v.isoformat() if v else None


@dataclass(frozen=True)
class UploadHistory:
    """One upload attempt; the only progress artifact visible to admins."""

    upload_id: int
    batch_id: str
    filename: str
    status: UploadStatus
    total_records: int
    processed_records: int
    error_records: int
    uploaded_at: datetime
    completed_at: Optional[datetime] = None
    errors: List[Dict[str, Any]] = field(default_factory=list)
    summary: Optional[Dict[str, Any]] = None

    def to_dict(self) -> dict:
        return {
            "id": self.upload_id,
            "batchId": self.batch_id,
            "filename": self.filename,
            "status": self.status.value,
            "totalRecords": self.total_records,
            "processedRecords": self.processed_records,
            "errorRecords": self.error_records,
            "uploadedAt": _iso(self.uploaded_at),
            "completedAt": _iso(self.completed_at),
            "errors": list(self.errors),
            "summary": self.summary,
        }


@dataclass(frozen=True)
class ImportLog:
    """Long-lived reporting copy of an upload, scoped to the file type."""

    import_id: int
    batch_id: str
    file_name: str
    file_type: ImportFileType
    status: UploadStatus
    total_records: int
    processed_records: int
    error_records: int
    created_at: datetime
    completed_at: Optional[datetime] = None
    errors: List[Dict[str, Any]] = field(default_factory=list)
    summary: Optional[Dict[str, Any]] = None
