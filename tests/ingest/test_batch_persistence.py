from __future__ import annotations

from datetime import date

from src.workforce.workforce.core.enums import AttendanceStatus, ImportSource
from src.workforce.workforce.employees.directory import EmployeeDirectory
from src.workforce.workforce.ingest.model import ImportTally, NormalizedAttendanceRecord
from src.workforce.workforce.ingest.persistence import BatchPersistenceEngine, RetryPolicy, chunked


def _record(code: str, row: int, day: int = 14) -> NormalizedAttendanceRecord:
    return NormalizedAttendanceRecord(
        employee_code=code,
        attendance_date=date(2026, 2, day),
        status=AttendanceStatus.PRESENT,
        import_source=ImportSource.SRP,
        import_batch="b1",
        row_number=row,
    )


def _directory(employees) -> EmployeeDirectory:
    return EmployeeDirectory(employees.list_all())


def test_chunked_splits_into_fixed_batches():
    records = [_record("TIPL1001", i, day=i) for i in range(1, 6)]

    assert [len(c) for c in chunked(records, 2)] == [2, 2, 1]


def test_rows_are_created_then_updated(employees, attendance):
    engine = BatchPersistenceEngine(attendance, batch_size=500)
    records = [_record("TIPL1001", 1), _record("TIPL1002", 2)]

    first = ImportTally()
    engine.persist(records, _directory(employees), first)
    second = ImportTally()
    engine.persist(records, _directory(employees), second)

    assert (first.processed, first.created, first.updated) == (2, 2, 0)
    assert (second.processed, second.created, second.updated) == (2, 0, 2)
    assert len(attendance.rows) == 2


def test_failing_row_does_not_abort_its_batch(employees, attendance):
    attendance.fail_codes = {"TIPL1001"}
    engine = BatchPersistenceEngine(attendance, batch_size=500)
    tally = ImportTally()

    engine.persist([_record("TIPL1001", 1), _record("TIPL1002", 2)], _directory(employees), tally)

    assert tally.processed == 1
    assert [(e.row, e.error) for e in tally.errors] == [(1, "Database error: cannot write TIPL1001")]
    assert len(attendance.rows) == 1


def test_unknown_employee_is_a_row_error(employees, attendance):
    engine = BatchPersistenceEngine(attendance, batch_size=500)
    tally = ImportTally()

    engine.persist([_record("GHOST9", 1), _record("TIPL1002", 2)], _directory(employees), tally)

    assert tally.processed == 1
    assert tally.errors[0].error == "Employee not found with code: GHOST9"
    assert tally.errors[0].data["employeeCode"] == "GHOST9"


def test_failed_batch_marks_its_rows_and_later_batches_still_run(employees, attendance):
    attendance.failing_batches = {1}
    engine = BatchPersistenceEngine(attendance, batch_size=2)
    tally = ImportTally()
    progress = []
    records = [_record("TIPL1001", 1), _record("TIPL1002", 2), _record("TIPL1001", 3, day=15)]

    engine.persist(records, _directory(employees), tally, on_batch=lambda i, n: progress.append((i, n)))

    assert tally.processed == 1
    assert [e.row for e in tally.errors] == [1, 2]
    assert all(e.error == "Batch processing failed: Lock wait timeout exceeded" for e in tally.errors)
    assert list(attendance.rows) == [(1, date(2026, 2, 15))]
    assert progress == [(1, 2), (2, 2)]


def test_failed_batch_discards_row_errors_of_that_batch(employees, attendance):
    attendance.failing_batches = {1}
    engine = BatchPersistenceEngine(attendance, batch_size=500)
    tally = ImportTally()

    engine.persist([_record("GHOST9", 1), _record("TIPL1001", 2)], _directory(employees), tally)

    assert [e.error.startswith("Batch processing failed") for e in tally.errors] == [True, True]


def test_retry_policy_reruns_a_failed_batch(employees, attendance):
    attendance.failing_batches = {1}
    sleeps = []
    engine = BatchPersistenceEngine(
        attendance,
        batch_size=500,
        retry=RetryPolicy(max_attempts=2, backoff_seconds=1.5, sleep=sleeps.append),
    )
    tally = ImportTally()

    engine.persist([_record("TIPL1001", 1)], _directory(employees), tally)

    assert tally.processed == 1
    assert tally.errors == []
    assert attendance.batch_attempts == 2
    assert sleeps == [1.5]


def test_retry_backoff_doubles():
    policy = RetryPolicy(max_attempts=3, backoff_seconds=2.0)

    assert [policy.delay(a) for a in (1, 2, 3)] == [2.0, 4.0, 8.0]
