from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

import mysql.connector

from ..core.enums import UpsertOutcome
from ..core.exceptions import BatchTransactionError, PersistenceError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, db_transaction
from ..ingest.model import NormalizedAttendanceRecord
from .repository import AttendanceRepository, AttendanceWriter

_MUTABLE_COLUMNS = (
    "status",
    "check_in_time",
    "check_out_time",
    "lunch_out_time",
    "lunch_in_time",
    "break_out_time",
    "break_in_time",
    "hours_worked",
    "shift",
    "shift_start",
    "has_tag_work",
    "has_activity_work",
    "tag_work_minutes",
    "activity_minutes",
    "has_exception",
    "exception_type",
    "exception_notes",
    "remarks",
    "import_source",
    "import_batch",
)

UPSERT_SQL = f"""
    INSERT INTO attendance_records(employee_id, attendance_date, {", ".join(_MUTABLE_COLUMNS)})
    VALUES(%s,%s,{",".join(["%s"] * len(_MUTABLE_COLUMNS))})
    ON DUPLICATE KEY UPDATE
        {", ".join(f"{c}=VALUES({c})" for c in _MUTABLE_COLUMNS)},
        updated_at=CURRENT_TIMESTAMP
"""


def _params(employee_id: int, r: NormalizedAttendanceRecord) -> tuple:
    return (
        int(employee_id),
        r.attendance_date,
        r.status.value,
        r.check_in_time,
        r.check_out_time,
        r.lunch_out_time,
        r.lunch_in_time,
        r.break_out_time,
        r.break_in_time,
        r.hours_worked,
        r.shift,
        r.shift_start,
        1 if r.has_tag_work else 0,
        1 if r.has_activity_work else 0,
        int(r.tag_work_minutes),
        int(r.activity_minutes),
        1 if r.has_exception else 0,
        r.exception_type.value if r.exception_type else None,
        r.exception_notes,
        r.remarks,
        r.import_source.value,
        r.import_batch,
    )


def _outcome(rowcount: int) -> UpsertOutcome:
    # MySQL reports 1 affected row for an insert and 2 for an update.
    return UpsertOutcome.CREATED if rowcount == 1 else UpsertOutcome.UPDATED


class _MySQLAttendanceWriter(AttendanceWriter):
    def __init__(self, cur):
        self._cur = cur

    def upsert(self, employee_id: int, record: NormalizedAttendanceRecord) -> UpsertOutcome:
        self._cur.execute("SAVEPOINT attendance_row")
        try:
            self._cur.execute(UPSERT_SQL, _params(employee_id, record))
            outcome = _outcome(self._cur.rowcount)
        except mysql.connector.Error as e:
            self._cur.execute("ROLLBACK TO SAVEPOINT attendance_row")
            raise PersistenceError(f"Database error: {e.msg}") from e
        self._cur.execute("RELEASE SAVEPOINT attendance_row")
        return outcome


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @contextmanager
    def batch(self, *, max_wait_seconds: int, timeout_seconds: int) -> Iterator[AttendanceWriter]:
        try:
            with db_transaction(
                self._conn_factory,
                max_wait_seconds=max_wait_seconds,
                timeout_seconds=timeout_seconds,
            ) as (_, cur):
                yield _MySQLAttendanceWriter(cur)
        except mysql.connector.Error as e:
            raise BatchTransactionError(str(e)) from e

    def upsert(self, employee_id: int, record: NormalizedAttendanceRecord) -> UpsertOutcome:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(UPSERT_SQL, _params(employee_id, record))
                return _outcome(cur.rowcount)
        except mysql.connector.Error as e:
            raise PersistenceError(f"Database error: {e.msg}") from e
