from __future__ import annotations

import re
from datetime import datetime

import pytest

from src.workforce.workforce.core.enums import ImportFileType, UploadStatus
from src.workforce.workforce.core.exceptions import NotFoundError, ValidationError
from src.workforce.workforce.history.service import UploadHistoryService, new_batch_id, terminal_status
from src.workforce.workforce.ingest.model import RowError


@pytest.mark.parametrize(
    "total, processed, errors, expected",
    [
        (10, 10, 0, UploadStatus.COMPLETED),
        (0, 0, 0, UploadStatus.COMPLETED),
        (10, 7, 3, UploadStatus.PARTIALLY_COMPLETED),
        (10, 0, 10, UploadStatus.FAILED),
        (10, 0, 0, UploadStatus.FAILED),
        (10, 9, 0, UploadStatus.PARTIALLY_COMPLETED),
    ],
)
def test_terminal_status(total, processed, errors, expected):
    assert terminal_status(total, processed, errors) is expected


def test_batch_id_format():
    assert re.fullmatch(r"batch_\d{13}_[0-9a-f]{9}", new_batch_id())


def test_start_creates_processing_records(history_service, history_repo):
    tracker = history_service.start(filename="feb.srp", file_type=ImportFileType.ATTENDANCE_SRP)

    upload = history_repo.uploads[tracker.batch_id]
    assert upload.status is UploadStatus.PROCESSING
    assert upload.filename == "feb.srp"
    assert history_repo.logs[tracker.import_id].file_type is ImportFileType.ATTENDANCE_SRP


def test_finalize_writes_status_and_summaries_once(history_service, history_repo):
    tracker = history_service.start(filename="m.csv", file_type=ImportFileType.ATTENDANCE_CSV)
    tracker.progress(total=4, processed=2, errors=0)

    status = tracker.finalize(total=4, processed=3, errors=[RowError(row=2, error="bad")], warnings=1)

    assert status is UploadStatus.PARTIALLY_COMPLETED
    upload = history_repo.uploads[tracker.batch_id]
    assert (upload.total_records, upload.processed_records, upload.error_records) == (4, 3, 1)
    assert upload.errors == [{"row": 2, "error": "bad", "data": {}}]
    assert upload.summary["successRate"] == 75.0
    assert upload.summary["fileName"] == "m.csv"
    assert history_repo.logs[tracker.import_id].summary == {
        "totalRows": 4,
        "processed": 3,
        "errors": 1,
        "warnings": 1,
    }

    with pytest.raises(ValidationError):
        tracker.finalize(total=4, processed=4, errors=[])


def test_progress_after_finalize_is_ignored(history_service, history_repo):
    tracker = history_service.start(filename="m.csv", file_type=ImportFileType.ATTENDANCE_CSV)
    tracker.finalize(total=1, processed=1, errors=[])
    calls = len(history_repo.progress_calls)

    tracker.progress(total=1, processed=0, errors=1)

    assert len(history_repo.progress_calls) == calls


def test_fail_marks_failed_even_with_progress(history_service, history_repo):
    tracker = history_service.start(filename="m.csv", file_type=ImportFileType.ATTENDANCE_CSV)

    tracker.fail("Import failed: boom", total=5, processed=2)

    upload = history_repo.uploads[tracker.batch_id]
    assert upload.status is UploadStatus.FAILED
    assert upload.errors[-1]["error"] == "Import failed: boom"


def test_reconcile_fails_only_stale_processing_uploads(history_repo):
    clock = {"now": datetime(2026, 3, 2, 8, 0)}
    service = UploadHistoryService(history_repo, clock=lambda: clock["now"])
    stale = service.start(filename="old.srp", file_type=ImportFileType.ATTENDANCE_SRP)
    done = service.start(filename="done.srp", file_type=ImportFileType.ATTENDANCE_SRP)
    done.finalize(total=1, processed=1, errors=[])

    clock["now"] = datetime(2026, 3, 2, 8, 20)
    fresh = service.start(filename="new.srp", file_type=ImportFileType.ATTENDANCE_SRP)

    clock["now"] = datetime(2026, 3, 2, 8, 45)
    assert service.reconcile_stale(older_than_minutes=30) == 1

    assert history_repo.uploads[stale.batch_id].status is UploadStatus.FAILED
    assert "abandoned" in history_repo.uploads[stale.batch_id].errors[-1]["error"]
    assert history_repo.logs[stale.import_id].status is UploadStatus.FAILED
    assert history_repo.uploads[done.batch_id].status is UploadStatus.COMPLETED
    assert history_repo.uploads[fresh.batch_id].status is UploadStatus.PROCESSING


def test_lookup_and_delete_errors(history_service):
    with pytest.raises(NotFoundError):
        history_service.get("batch_missing")
    with pytest.raises(NotFoundError):
        history_service.delete_history(999)
    with pytest.raises(NotFoundError):
        history_service.delete_batch("batch_missing")
    with pytest.raises(ValidationError):
        history_service.delete_batch("  ")


def test_list_recent_is_newest_first(history_repo):
    clock = {"now": datetime(2026, 3, 1, 9, 0)}
    service = UploadHistoryService(history_repo, clock=lambda: clock["now"])
    first = service.start(filename="a.csv", file_type=ImportFileType.ATTENDANCE_CSV)
    clock["now"] = datetime(2026, 3, 1, 10, 0)
    second = service.start(filename="b.csv", file_type=ImportFileType.ATTENDANCE_CSV)

    assert [u.batch_id for u in service.list_recent(limit=1)] == [second.batch_id]
    assert [u.batch_id for u in service.list_recent()] == [second.batch_id, first.batch_id]
