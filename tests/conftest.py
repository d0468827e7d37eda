from __future__ import annotations

import itertools
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime
from typing import Optional

import pytest

from src.workforce.workforce.core.enums import UploadStatus, UpsertOutcome
from src.workforce.workforce.core.exceptions import BatchTransactionError, PersistenceError
from src.workforce.workforce.employees.model import Employee, NewEmployee
from src.workforce.workforce.employees.resolver import EmployeeResolver
from src.workforce.workforce.history.model import ImportLog, UploadHistory
from src.workforce.workforce.history.service import UploadHistoryService
from src.workforce.workforce.ingest.model import NormalizedAttendanceRecord
from src.workforce.workforce.ingest.persistence import BatchPersistenceEngine, RetryPolicy
from src.workforce.workforce.ingest.service import AttendanceImportService

NOW = datetime(2026, 3, 2, 9, 30, 0)


class InMemoryEmployees:
    def __init__(self, *codes: str):
        self._by_code: dict[str, Employee] = {}
        self._ids = itertools.count(1)
        self.create_calls: list[list[NewEmployee]] = []
        for code in codes:
            self._add(NewEmployee(code, code.title(), f"{code.lower()}@company.com", "Ops", "Staff", True))

    def _add(self, e: NewEmployee) -> Employee:
        emp = Employee(
            employee_id=next(self._ids),
            employee_code=e.employee_code,
            name=e.name,
            email=e.email,
            department=e.department,
            designation=e.designation,
            is_active=e.is_active,
        )
        self._by_code[e.employee_code] = emp
        return emp

    def find_by_code(self, employee_code: str) -> Optional[Employee]:
        return self._by_code.get(employee_code)

    def find_by_codes(self, employee_codes):
        return [self._by_code[c] for c in employee_codes if c in self._by_code]

    def list_all(self):
        return list(self._by_code.values())

    def create_many_ignoring_duplicates(self, employees) -> int:
        self.create_calls.append(list(employees))
        inserted = 0
        for e in employees:
            if e.employee_code not in self._by_code:
                self._add(e)
                inserted += 1
        return inserted


class InMemoryAttendance:
    """Attendance store with all-or-nothing batches.

    ``fail_codes`` makes single rows fail; ``failing_batches`` lists 1-based
    batch attempts whose commit fails.
    """

    def __init__(self):
        self.rows: dict[tuple[int, date], NormalizedAttendanceRecord] = {}
        self.fail_codes: set[str] = set()
        self.failing_batches: set[int] = set()
        self.batch_attempts = 0
        self.standalone_upserts = 0

    def _write(self, target: dict, employee_id: int, record: NormalizedAttendanceRecord) -> UpsertOutcome:
        if record.employee_code in self.fail_codes:
            raise PersistenceError(f"Database error: cannot write {record.employee_code}")
        key = (employee_id, record.attendance_date)
        outcome = UpsertOutcome.UPDATED if key in target else UpsertOutcome.CREATED
        target[key] = record
        return outcome

    @contextmanager
    def batch(self, *, max_wait_seconds: int, timeout_seconds: int):
        self.batch_attempts += 1
        staged = dict(self.rows)
        store = self

        class _Writer:
            def upsert(self, employee_id: int, record: NormalizedAttendanceRecord) -> UpsertOutcome:
                return store._write(staged, employee_id, record)

        yield _Writer()
        if self.batch_attempts in self.failing_batches:
            raise BatchTransactionError("Lock wait timeout exceeded")
        self.rows = staged

    def upsert(self, employee_id: int, record: NormalizedAttendanceRecord) -> UpsertOutcome:
        self.standalone_upserts += 1
        return self._write(self.rows, employee_id, record)


class InMemoryHistory:
    def __init__(self):
        self.uploads: dict[str, UploadHistory] = {}
        self.logs: dict[int, ImportLog] = {}
        self.progress_calls: list[tuple[int, int, int]] = []
        self.attendance: Optional[InMemoryAttendance] = None
        self._ids = itertools.count(1)

    def create_upload(self, *, batch_id, filename, uploaded_at) -> int:
        upload_id = next(self._ids)
        self.uploads[batch_id] = UploadHistory(
            upload_id=upload_id,
            batch_id=batch_id,
            filename=filename,
            status=UploadStatus.PROCESSING,
            total_records=0,
            processed_records=0,
            error_records=0,
            uploaded_at=uploaded_at,
        )
        return upload_id

    def update_upload_progress(self, *, batch_id, total_records, processed_records, error_records) -> bool:
        self.progress_calls.append((total_records, processed_records, error_records))
        u = self.uploads[batch_id]
        self.uploads[batch_id] = replace(
            u, total_records=total_records, processed_records=processed_records, error_records=error_records
        )
        return True

    def finalize_upload(
        self, *, batch_id, status, total_records, processed_records, error_records, errors, summary, completed_at
    ) -> bool:
        u = self.uploads[batch_id]
        self.uploads[batch_id] = replace(
            u,
            status=status,
            total_records=total_records,
            processed_records=processed_records,
            error_records=error_records,
            errors=list(errors),
            summary=summary,
            completed_at=completed_at,
        )
        return True

    def create_import_log(self, *, batch_id, file_name, file_type, created_at) -> int:
        import_id = next(self._ids)
        self.logs[import_id] = ImportLog(
            import_id=import_id,
            batch_id=batch_id,
            file_name=file_name,
            file_type=file_type,
            status=UploadStatus.PROCESSING,
            total_records=0,
            processed_records=0,
            error_records=0,
            created_at=created_at,
        )
        return import_id

    def update_import_log_progress(self, *, import_id, total_records, processed_records, error_records) -> bool:
        self.logs[import_id] = replace(
            self.logs[import_id],
            total_records=total_records,
            processed_records=processed_records,
            error_records=error_records,
        )
        return True

    def finalize_import_log(
        self, *, import_id, status, total_records, processed_records, error_records, errors, summary, completed_at
    ) -> bool:
        self.logs[import_id] = replace(
            self.logs[import_id],
            status=status,
            total_records=total_records,
            processed_records=processed_records,
            error_records=error_records,
            errors=list(errors),
            summary=summary,
            completed_at=completed_at,
        )
        return True

    def list_uploads(self, *, limit: int):
        items = sorted(self.uploads.values(), key=lambda u: (u.uploaded_at, u.upload_id), reverse=True)
        return items[:limit]

    def get_upload_by_batch(self, batch_id: str):
        return self.uploads.get(batch_id)

    def list_processing_before(self, cutoff: datetime):
        return [u for u in self.uploads.values() if u.status is UploadStatus.PROCESSING and u.uploaded_at < cutoff]

    def delete_upload(self, upload_id: int) -> bool:
        for batch_id, u in list(self.uploads.items()):
            if u.upload_id == upload_id:
                del self.uploads[batch_id]
                return True
        return False

    def delete_batch(self, batch_id: str):
        if batch_id not in self.uploads:
            return None
        deleted = 0
        if self.attendance is not None:
            keys = [k for k, r in self.attendance.rows.items() if r.import_batch == batch_id]
            for k in keys:
                del self.attendance.rows[k]
            deleted = len(keys)
        del self.uploads[batch_id]
        return deleted

    def fail_import_logs(self, *, batch_id, completed_at) -> int:
        n = 0
        for import_id, log in list(self.logs.items()):
            if log.batch_id == batch_id and log.status is UploadStatus.PROCESSING:
                self.logs[import_id] = replace(log, status=UploadStatus.FAILED, completed_at=completed_at)
                n += 1
        return n


def sequential_batch_ids():
    counter = itertools.count(1)
    return lambda: f"batch_test_{next(counter)}"


@pytest.fixture
def employees():
    return InMemoryEmployees("TIPL1001", "TIPL1002")


@pytest.fixture
def attendance():
    return InMemoryAttendance()


@pytest.fixture
def history_repo(attendance):
    repo = InMemoryHistory()
    repo.attendance = attendance
    return repo


@pytest.fixture
def history_service(history_repo):
    return UploadHistoryService(history_repo, clock=lambda: NOW, batch_id_factory=sequential_batch_ids())


@pytest.fixture
def make_import_service(employees, attendance, history_service):
    def _make(*, batch_size: int = 500, retry: Optional[RetryPolicy] = None) -> AttendanceImportService:
        engine = BatchPersistenceEngine(attendance, batch_size=batch_size, retry=retry)
        return AttendanceImportService(
            attendance,
            EmployeeResolver(employees),
            history_service,
            engine,
            progress_every=batch_size,
        )

    return _make
