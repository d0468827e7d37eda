from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from ..core.enums import AttendanceStatus, ExceptionType, ImportSource

RawRow = Dict[str, str]
"""Field name -> raw string value, as extracted from one input line."""


@dataclass(frozen=True)
class ParseResult:
    """Output of a raw parser: ordered rows plus structural errors."""

    rows: List[RawRow]
    errors: List[str] = field(default_factory=list)
    fields: List[str] = field(default_factory=list)
    attendance_date: Optional[date] = None

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class NormalizedAttendanceRecord:
    """Canonical unit of work handed to persistence."""

    employee_code: str
    attendance_date: date
    status: AttendanceStatus
    import_source: ImportSource
    import_batch: str
    row_number: int
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    lunch_out_time: Optional[datetime] = None
    lunch_in_time: Optional[datetime] = None
    break_out_time: Optional[datetime] = None
    break_in_time: Optional[datetime] = None
    hours_worked: Decimal = Decimal("0")
    shift: Optional[str] = None
    shift_start: Optional[str] = None
    employee_name: Optional[str] = None
    remarks: Optional[str] = None
    tag_work_minutes: int = 0
    activity_minutes: int = 0
    has_exception: bool = False
    exception_type: Optional[ExceptionType] = None
    exception_notes: Optional[str] = None
    status_inferred: bool = False

    @property
    def has_tag_work(self) -> bool:
        return self.tag_work_minutes > 0

    @property
    def has_activity_work(self) -> bool:
        return self.activity_minutes > 0

    def to_dict(self) -> dict:
        def _ts(v: Optional[datetime]) -> Optional[str]:
            return v.strftime("%H:%M") if v else None

        return {
            "employeeCode": self.employee_code,
            "date": self.attendance_date.strftime("%Y-%m-%d"),
            "status": self.status.value,
            "checkInTime": _ts(self.check_in_time),
            "checkOutTime": _ts(self.check_out_time),
            "lunchOutTime": _ts(self.lunch_out_time),
            "lunchInTime": _ts(self.lunch_in_time),
            "breakOutTime": _ts(self.break_out_time),
            "breakInTime": _ts(self.break_in_time),
            "hoursWorked": str(self.hours_worked),
            "shift": self.shift,
            "shiftStart": self.shift_start,
        }


@dataclass(frozen=True)
class RowError:
    row: int
    error: str
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {"row": self.row, "error": self.error, "data": dict(self.data)}


@dataclass(frozen=True)
class RowWarning:
    row: int
    warning: str
    employee: str

    def to_dict(self) -> dict:
        return {"row": self.row, "warning": self.warning, "employee": self.employee}


@dataclass
class ImportTally:
    """Mutable counters shared by the row loop and the batch engine of one upload."""

    processed: int = 0
    created: int = 0
    updated: int = 0
    errors: List[RowError] = field(default_factory=list)
    warnings: List[RowWarning] = field(default_factory=list)

    def add_error(self, row: int, message: str, data: Optional[Dict[str, Any]] = None) -> None:
        self.errors.append(RowError(row=row, error=message, data=dict(data or {})))

    def add_warning(self, row: int, message: str, employee: str) -> None:
        self.warnings.append(RowWarning(row=row, warning=message, employee=employee))


@dataclass(frozen=True)
class ImportResult:
    """Summary returned to the HTTP caller for one upload."""

    import_id: int
    batch_id: str
    total_records: int
    processed_records: int
    errors: List[RowError]
    warnings: List[RowWarning]

    @property
    def error_records(self) -> int:
        return len(self.errors)

    @property
    def message(self) -> str:
        return f"Successfully processed {self.processed_records} out of {self.total_records} records"

    def to_dict(self, *, error_limit: Optional[int] = None) -> dict:
        errors = self.errors if error_limit is None else self.errors[: max(0, int(error_limit))]
        return {
            "importId": self.import_id,
            "batchId": self.batch_id,
            "totalRecords": self.total_records,
            "processedRecords": self.processed_records,
            "errorRecords": self.error_records,
            "warningsCount": len(self.warnings),
            "errors": [e.to_dict() for e in errors],
            "warnings": [w.to_dict() for w in self.warnings],
        }
