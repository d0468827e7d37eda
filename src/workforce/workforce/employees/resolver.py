from __future__ import annotations

import logging
from typing import Dict, List, Sequence

from ..core.constants import DEFAULT_DEPARTMENT, DEFAULT_DESIGNATION, DEFAULT_EMAIL_DOMAIN
from .directory import EmployeeDirectory
from .model import Employee, NewEmployee
from .repository import EmployeeRepository

logger = logging.getLogger(__name__)


class EmployeeResolver:
    """Maps employee codes from import rows onto employee records.

    SRP device exports are authoritative: unknown codes are created as
    placeholder employees. Manual CSV uploads never create employees.
    """

    def __init__(
        self,
        employees: EmployeeRepository,
        *,
        email_domain: str = DEFAULT_EMAIL_DOMAIN,
        department: str = DEFAULT_DEPARTMENT,
        designation: str = DEFAULT_DESIGNATION,
    ):
        self._employees = employees
        self._email_domain = email_domain
        self._department = department
        self._designation = designation

    def snapshot(self) -> EmployeeDirectory:
        return EmployeeDirectory(self._employees.list_all())

    def stage_unknown(self, directory: EmployeeDirectory, rows: Sequence[dict]) -> List[NewEmployee]:
        """Collect one placeholder per unknown code, in first-seen order."""
        staged: Dict[str, NewEmployee] = {}
        for row in rows:
            code = (row.get("employeeCode") or "").strip().upper()
            if not code or code in staged or directory.lookup(code) is not None:
                continue
            staged[code] = NewEmployee(
                employee_code=code,
                name=(row.get("employeeName") or "").strip() or code,
                email=f"{code.lower()}@{self._email_domain}",
                department=self._department,
                designation=self._designation,
                is_active=True,
            )
        return list(staged.values())

    def ensure_srp_employees(self, directory: EmployeeDirectory, rows: Sequence[dict]) -> EmployeeDirectory:
        """Create every unknown code in one bulk call, then return a refreshed snapshot."""
        staged = self.stage_unknown(directory, rows)
        if not staged:
            return directory

        logger.info("Creating %d new employees from SRP import", len(staged))
        inserted = self._employees.create_many_ignoring_duplicates(staged)
        if inserted < len(staged):
            logger.info("%d staged employees already existed", len(staged) - inserted)

        fresh: Sequence[Employee] = self._employees.find_by_codes([e.employee_code for e in staged])
        return directory.with_employees(fresh)
