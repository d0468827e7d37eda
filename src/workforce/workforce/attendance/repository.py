from __future__ import annotations

from contextlib import AbstractContextManager
from typing import Protocol

from ..core.enums import UpsertOutcome
from ..ingest.model import NormalizedAttendanceRecord


class AttendanceWriter(Protocol):
    """Row writer bound to one open batch transaction."""

    def upsert(self, employee_id: int, record: NormalizedAttendanceRecord) -> UpsertOutcome:
        """Insert or overwrite the (employee, date) row.

        Raises ``PersistenceError`` for this row only; the transaction stays usable.
        """

        raise NotImplementedError


class AttendanceRepository(Protocol):
    def batch(self, *, max_wait_seconds: int, timeout_seconds: int) -> AbstractContextManager[AttendanceWriter]:
        """Open one transaction; raises ``BatchTransactionError`` if it cannot commit."""

        raise NotImplementedError

    def upsert(self, employee_id: int, record: NormalizedAttendanceRecord) -> UpsertOutcome:
        """Standalone upsert committed on its own (CSV rows)."""

        raise NotImplementedError
