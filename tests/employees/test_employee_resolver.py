from __future__ import annotations

import pytest

from src.workforce.workforce.employees.directory import EmployeeDirectory
from src.workforce.workforce.employees.model import Employee
from src.workforce.workforce.employees.resolver import EmployeeResolver


def test_directory_lookup_is_case_insensitive_and_read_only():
    directory = EmployeeDirectory([Employee(1, "TIPL1001", "Ann")])

    assert directory.lookup(" tipl1001 ").employee_id == 1
    assert "TIPL1001" in directory
    assert len(directory) == 1
    with pytest.raises(TypeError):
        directory._by_code["X1"] = Employee(2, "X1", "X")


def test_with_employees_returns_a_new_directory():
    base = EmployeeDirectory([Employee(1, "TIPL1001", "Ann")])

    grown = base.with_employees([Employee(2, "TIPL2001", "Bob")])

    assert "TIPL2001" in grown
    assert "TIPL2001" not in base


def test_stage_unknown_dedupes_and_builds_placeholders(employees):
    resolver = EmployeeResolver(employees, email_domain="acme.test")
    rows = [
        {"employeeCode": "TIPL1001", "employeeName": "Known"},
        {"employeeCode": "tipl3001", "employeeName": "Zed Ray"},
        {"employeeCode": "TIPL3001", "employeeName": "Zed Again"},
        {"employeeCode": "TIPL3002", "employeeName": ""},
        {"employeeCode": ""},
    ]

    staged = resolver.stage_unknown(resolver.snapshot(), rows)

    assert [(e.employee_code, e.name, e.email) for e in staged] == [
        ("TIPL3001", "Zed Ray", "tipl3001@acme.test"),
        ("TIPL3002", "TIPL3002", "tipl3002@acme.test"),
    ]
    assert all(e.department == "General" and e.designation == "Employee" and e.is_active for e in staged)


def test_ensure_srp_employees_bulk_creates_and_refreshes(employees):
    resolver = EmployeeResolver(employees)
    before = resolver.snapshot()

    after = resolver.ensure_srp_employees(before, [{"employeeCode": "TIPL4001", "employeeName": "New"}])

    assert len(employees.create_calls) == 1
    assert after.lookup("TIPL4001").name == "New"
    assert before.lookup("TIPL4001") is None


def test_ensure_srp_employees_skips_when_all_known(employees):
    resolver = EmployeeResolver(employees)
    directory = resolver.snapshot()

    assert resolver.ensure_srp_employees(directory, [{"employeeCode": "TIPL1001"}]) is directory
    assert employees.create_calls == []
