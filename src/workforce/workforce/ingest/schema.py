"""Row schema for the manual CSV attendance export."""
from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from ..core.enums import AttendanceStatus, ExceptionType


class CsvAttendanceRow(BaseModel):
    """One validated CSV data row; field aliases are the CSV header names."""

    employee_code: str = Field(alias="employeeCode", min_length=1)
    date_text: str = Field(alias="date", min_length=1)
    status: Optional[AttendanceStatus] = None
    check_in_time: Optional[str] = Field(default=None, alias="checkInTime")
    check_out_time: Optional[str] = Field(default=None, alias="checkOutTime")
    total_hours: Optional[Decimal] = Field(default=None, alias="totalHours", ge=0)
    tag_work_minutes: int = Field(default=0, alias="tagWorkMinutes", ge=0)
    activity_minutes: int = Field(default=0, alias="activityMinutes", ge=0)
    has_exception: bool = Field(default=False, alias="hasException")
    exception_type: Optional[ExceptionType] = Field(default=None, alias="exceptionType")
    exception_notes: Optional[str] = Field(default=None, alias="exceptionNotes")

    model_config = {"str_strip_whitespace": True, "populate_by_name": True}

    @field_validator("employee_code", mode="before")
    @classmethod
    def _upper_code(cls, v: Any) -> Any:
        return v.strip().upper() if isinstance(v, str) else v

    @field_validator(
        "status",
        "exception_type",
        "check_in_time",
        "check_out_time",
        "total_hours",
        "exception_notes",
        mode="before",
    )
    @classmethod
    def _blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @field_validator("status", "exception_type", mode="before")
    @classmethod
    def _upper_enum(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @field_validator("tag_work_minutes", "activity_minutes", mode="before")
    @classmethod
    def _minutes(cls, v: Any) -> Any:
        if v is None:
            return 0
        if isinstance(v, str):
            v = v.strip()
            if not v:
                return 0
            # Exports sometimes carry fractional minutes ("12.5").
            try:
                return int(float(v))
            except (ValueError, OverflowError):
                # "inf", "1e999" and friends; let the int field reject them.
                return v
        return v

    @field_validator("has_exception", mode="before")
    @classmethod
    def _flag(cls, v: Any) -> Any:
        if v is None:
            return False
        if isinstance(v, str):
            return v.strip().lower() in {"true", "1", "yes", "y"}
        return v


def describe_errors(exc) -> str:
    """Flatten a pydantic ValidationError into one human readable line."""
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc} - {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts)
