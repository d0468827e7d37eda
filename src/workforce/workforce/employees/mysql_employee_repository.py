from __future__ import annotations

from typing import Iterable, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Employee, NewEmployee
from .repository import EmployeeRepository

_COLUMNS = "employee_id, employee_code, name, email, department, designation, is_active"


def _to_employee(r: dict) -> Employee:
    return Employee(
        employee_id=int(r["employee_id"]),
        employee_code=r["employee_code"],
        name=r["name"],
        email=r.get("email"),
        department=r.get("department"),
        designation=r.get("designation"),
        is_active=bool(r.get("is_active", True)),
    )


class MySQLEmployeeRepository(EmployeeRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def find_by_code(self, employee_code: str) -> Optional[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM employees WHERE employee_code=%s", (employee_code,))
            row = fetchone(cur)
            return _to_employee(row) if row else None

    def find_by_codes(self, employee_codes: Iterable[str]) -> Sequence[Employee]:
        codes = sorted({c for c in employee_codes if c})
        if not codes:
            return []
        placeholders = ",".join(["%s"] * len(codes))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM employees WHERE employee_code IN ({placeholders})",
                tuple(codes),
            )
            return [_to_employee(r) for r in fetchall(cur)]

    def list_all(self) -> Sequence[Employee]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM employees ORDER BY employee_id")
            return [_to_employee(r) for r in fetchall(cur)]

    def create_many_ignoring_duplicates(self, employees: Sequence[NewEmployee]) -> int:
        if not employees:
            return 0
        with db_cursor(self._conn_factory) as (_, cur):
            cur.executemany(
                """
                INSERT IGNORE INTO employees(employee_code, name, email, department, designation, is_active)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                [
                    (e.employee_code, e.name, e.email, e.department, e.designation, 1 if e.is_active else 0)
                    for e in employees
                ],
            )
            return int(cur.rowcount or 0)
