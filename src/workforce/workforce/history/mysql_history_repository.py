from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from ..core.enums import ImportFileType, UploadStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_json, to_json
from .model import UploadHistory
from .repository import UploadHistoryRepository

_UPLOAD_COLUMNS = """
    upload_id, batch_id, filename, status, total_records, processed_records, error_records,
    errors, summary, uploaded_at, completed_at
"""


def _to_upload(r: dict) -> UploadHistory:
    return UploadHistory(
        upload_id=int(r["upload_id"]),
        batch_id=r["batch_id"],
        filename=r["filename"],
        status=UploadStatus(r["status"]),
        total_records=int(r.get("total_records") or 0),
        processed_records=int(r.get("processed_records") or 0),
        error_records=int(r.get("error_records") or 0),
        uploaded_at=r["uploaded_at"],
        completed_at=r.get("completed_at"),
        errors=from_json(r.get("errors"), default=[]) or [],
        summary=from_json(r.get("summary")),
    )


class MySQLUploadHistoryRepository(UploadHistoryRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create_upload(self, *, batch_id: str, filename: str, uploaded_at: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO upload_history(batch_id, filename, status, total_records, processed_records,
                                           error_records, uploaded_at)
                VALUES(%s,%s,%s,0,0,0,%s)
                """,
                (batch_id, filename, UploadStatus.PROCESSING.value, uploaded_at),
            )
            return int(cur.lastrowid)

    def update_upload_progress(
        self, *, batch_id: str, total_records: int, processed_records: int, error_records: int
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE upload_history
                SET total_records=%s, processed_records=%s, error_records=%s
                WHERE batch_id=%s AND status=%s
                """,
                (total_records, processed_records, error_records, batch_id, UploadStatus.PROCESSING.value),
            )
            return cur.rowcount > 0

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE upload_history
                SET status=%s, total_records=%s, processed_records=%s, error_records=%s,
                    errors=%s, summary=%s, completed_at=%s
                WHERE batch_id=%s
                """,
                (
                    status.value,
                    total_records,
                    processed_records,
                    error_records,
                    to_json(errors) if errors else None,
                    to_json(summary),
                    completed_at,
                    batch_id,
                ),
            )
            return cur.rowcount > 0

    def create_import_log(
        self,
        *,
        batch_id: str,
        file_name: str,
        file_type: ImportFileType,
        created_at: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO import_logs(batch_id, file_name, file_type, status, total_records,
                                        processed_records, error_records, created_at)
                VALUES(%s,%s,%s,%s,0,0,0,%s)
                """,
                (batch_id, file_name, file_type.value, UploadStatus.PROCESSING.value, created_at),
            )
            return int(cur.lastrowid)

    def update_import_log_progress(
        self, *, import_id: int, total_records: int, processed_records: int, error_records: int
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE import_logs
                SET total_records=%s, processed_records=%s, error_records=%s
                WHERE import_id=%s
                """,
                (total_records, processed_records, error_records, int(import_id)),
            )
            return cur.rowcount > 0

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE import_logs
                SET status=%s, total_records=%s, processed_records=%s, error_records=%s,
                    errors=%s, summary=%s, completed_at=%s
                WHERE import_id=%s
                """,
                (
                    status.value,
                    total_records,
                    processed_records,
                    error_records,
                    to_json(errors),
                    to_json(summary),
                    completed_at,
                    int(import_id),
                ),
            )
            return cur.rowcount > 0

    def list_uploads(self, *, limit: int) -> Sequence[UploadHistory]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_UPLOAD_COLUMNS} FROM upload_history ORDER BY uploaded_at DESC, upload_id DESC LIMIT %s",
                (int(limit),),
            )
            return [_to_upload(r) for r in fetchall(cur)]

    def get_upload_by_batch(self, batch_id: str) -> Optional[UploadHistory]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_UPLOAD_COLUMNS} FROM upload_history WHERE batch_id=%s", (batch_id,))
            row = fetchone(cur)
            return _to_upload(row) if row else None

    def list_processing_before(self, cutoff: datetime) -> Sequence[UploadHistory]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_UPLOAD_COLUMNS} FROM upload_history WHERE status=%s AND uploaded_at < %s",
                (UploadStatus.PROCESSING.value, cutoff),
            )
            return [_to_upload(r) for r in fetchall(cur)]

    def delete_upload(self, upload_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM upload_history WHERE upload_id=%s", (int(upload_id),))
            return cur.rowcount > 0

    def delete_batch(self, batch_id: str) -> Optional[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT upload_id FROM upload_history WHERE batch_id=%s", (batch_id,))
            if not fetchone(cur):
                return None
            cur.execute("DELETE FROM attendance_records WHERE import_batch=%s", (batch_id,))
            deleted = int(cur.rowcount or 0)
            cur.execute("DELETE FROM upload_history WHERE batch_id=%s", (batch_id,))
            return deleted

    def fail_import_logs(self, *, batch_id: str, completed_at: datetime) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE import_logs SET status=%s, completed_at=%s WHERE batch_id=%s AND status=%s",
                (UploadStatus.FAILED.value, completed_at, batch_id, UploadStatus.PROCESSING.value),
            )
            return int(cur.rowcount or 0)
