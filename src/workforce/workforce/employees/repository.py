from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence

from .model import Employee, NewEmployee


class EmployeeRepository(Protocol):
    """Read/bulk-create interface the import pipeline needs from the employee store.

    The pipeline never updates or deletes existing employees.
    """

    def find_by_code(self, employee_code: str) -> Optional[Employee]:
        raise NotImplementedError

    def find_by_codes(self, employee_codes: Iterable[str]) -> Sequence[Employee]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Employee]:
        raise NotImplementedError

    def create_many_ignoring_duplicates(self, employees: Sequence[NewEmployee]) -> int:
        """Insert employees, silently skipping codes that already exist; returns rows inserted."""

        raise NotImplementedError
