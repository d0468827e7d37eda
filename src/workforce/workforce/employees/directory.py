from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, Mapping, Optional

from .model import Employee


class EmployeeDirectory:
    """Read-only snapshot of employees keyed by upper-cased employee code.

    Stages of one upload receive a directory by value; refreshing after bulk
    creation yields a new directory instead of mutating a shared map.
    """

    def __init__(self, employees: Iterable[Employee] = ()):
        self._by_code: Mapping[str, Employee] = MappingProxyType(
            {e.employee_code.upper(): e for e in employees}
        )

    def lookup(self, employee_code: str) -> Optional[Employee]:
        return self._by_code.get((employee_code or "").strip().upper())

    def __contains__(self, employee_code: object) -> bool:
        return isinstance(employee_code, str) and self.lookup(employee_code) is not None

    def __len__(self) -> int:
        return len(self._by_code)

    def with_employees(self, employees: Iterable[Employee]) -> "EmployeeDirectory":
        merged = dict(self._by_code)
        merged.update({e.employee_code.upper(): e for e in employees})
        return EmployeeDirectory(merged.values())
