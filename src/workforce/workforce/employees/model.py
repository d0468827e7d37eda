from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Employee:
    """Employee as seen by the import pipeline (owned by the employee CRUD screens)."""

    employee_id: int
    employee_code: str
    name: str
    email: Optional[str] = None
    department: Optional[str] = None
    designation: Optional[str] = None
    is_active: bool = True


@dataclass(frozen=True)
class NewEmployee:
    """Placeholder employee staged for creation during SRP ingestion."""

    employee_code: str
    name: str
    email: str
    department: str
    designation: str
    is_active: bool = True
