from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Dict, Optional

from pydantic import ValidationError as SchemaError

from ..common.datetime_utils import at_date, parse_attendance_date
from ..core.enums import AttendanceStatus, ImportSource
from ..core.exceptions import RowValidationError
from .inference.base import Evidence
from .inference.factory import InferencePolicyFactory
from .model import NormalizedAttendanceRecord, RawRow
from .schema import CsvAttendanceRow, describe_errors
from .time_slots import BREAK_IN, BREAK_OUT, CHECK_IN, CHECK_OUT, LUNCH_IN, LUNCH_OUT

logger = logging.getLogger(__name__)

_TWO_PLACES = Decimal("0.01")


def _explicit_status(value: Optional[str]) -> Optional[AttendanceStatus]:
    v = (value or "").strip().upper()
    if not v:
        return None
    try:
        return AttendanceStatus(v)
    except ValueError:
        return None


def _parse_date(value: str) -> date:
    day = parse_attendance_date(value)
    if day is None:
        raise RowValidationError(f"Invalid date format: {value}")
    return day


def _parse_slot(day: date, raw: RawRow, name: str) -> Optional[datetime]:
    value = (raw.get(name) or "").strip()
    if not value:
        return None
    ts = at_date(day, value)
    if ts is None:
        raise RowValidationError(f"Invalid time format for {name}: {value}")
    return ts


def _span_hours(start: Optional[datetime], end: Optional[datetime]) -> Decimal:
    if not start or not end or end <= start:
        return Decimal("0")
    seconds = Decimal(int((end - start).total_seconds()))
    return (seconds / Decimal(3600)).quantize(_TWO_PLACES)


class RowNormalizer:
    """Validate raw rows and turn them into ``NormalizedAttendanceRecord``.

    Raises ``RowValidationError`` for a row that cannot be normalized; the
    caller records it against the row number and moves on.
    """

    def __init__(self, policies: Optional[InferencePolicyFactory] = None):
        self._policies = policies or InferencePolicyFactory()

    def _resolve_status(
        self, explicit: Optional[AttendanceStatus], evidence: Evidence, source: ImportSource
    ) -> tuple[AttendanceStatus, bool]:
        if explicit is not None:
            return explicit, False
        return self._policies.for_source(source).infer(evidence), True

    def normalize_srp(self, raw: RawRow, *, row_number: int, batch_id: str) -> NormalizedAttendanceRecord:
        code = (raw.get("employeeCode") or "").strip().upper()
        if not code:
            raise RowValidationError("Employee code is required")

        day = _parse_date(raw.get("date") or "")
        slots: Dict[str, Optional[datetime]] = {
            name: _parse_slot(day, raw, name)
            for name in (CHECK_IN, BREAK_OUT, BREAK_IN, LUNCH_OUT, LUNCH_IN, CHECK_OUT)
        }

        reported = (raw.get("hoursWorked") or "").strip()
        if reported:
            try:
                hours = Decimal(reported)
            except InvalidOperation:
                raise RowValidationError(f"Invalid hours worked: {reported}") from None
            if hours < 0:
                raise RowValidationError(f"Invalid hours worked: {reported}")
        else:
            hours = _span_hours(slots[CHECK_IN], slots[CHECK_OUT])

        evidence = Evidence(
            hours_worked=hours,
            has_check_in=slots[CHECK_IN] is not None,
            has_check_out=slots[CHECK_OUT] is not None,
        )
        status, inferred = self._resolve_status(_explicit_status(raw.get("status")), evidence, ImportSource.SRP)
        if inferred:
            logger.debug("Inferred %s for %s on %s (hours=%s)", status.value, code, day, hours)

        shift = (raw.get("shift") or "").strip() or None
        shift_start = (raw.get("shiftStart") or "").strip() or None

        return NormalizedAttendanceRecord(
            employee_code=code,
            attendance_date=day,
            status=status,
            import_source=ImportSource.SRP,
            import_batch=batch_id,
            row_number=row_number,
            check_in_time=slots[CHECK_IN],
            check_out_time=slots[CHECK_OUT],
            lunch_out_time=slots[LUNCH_OUT],
            lunch_in_time=slots[LUNCH_IN],
            break_out_time=slots[BREAK_OUT],
            break_in_time=slots[BREAK_IN],
            hours_worked=hours,
            shift=shift,
            shift_start=shift_start,
            employee_name=(raw.get("employeeName") or "").strip() or None,
            remarks=f"Shift: {shift or 'N/A'}, Start: {shift_start or 'N/A'}",
            status_inferred=inferred,
        )

    def normalize_csv(self, raw: RawRow, *, row_number: int, batch_id: str) -> NormalizedAttendanceRecord:
        try:
            row = CsvAttendanceRow.model_validate(raw)
        except SchemaError as e:
            raise RowValidationError(describe_errors(e)) from None

        day = _parse_date(row.date_text)
        check_in = _parse_slot(day, {CHECK_IN: row.check_in_time or ""}, CHECK_IN)
        check_out = _parse_slot(day, {CHECK_OUT: row.check_out_time or ""}, CHECK_OUT)

        evidence = Evidence(
            hours_worked=row.total_hours or Decimal("0"),
            has_check_in=check_in is not None,
            has_check_out=check_out is not None,
            secondary_minutes=row.tag_work_minutes + row.activity_minutes,
        )
        status, inferred = self._resolve_status(row.status, evidence, ImportSource.CSV)

        return NormalizedAttendanceRecord(
            employee_code=row.employee_code,
            attendance_date=day,
            status=status,
            import_source=ImportSource.CSV,
            import_batch=batch_id,
            row_number=row_number,
            check_in_time=check_in,
            check_out_time=check_out,
            hours_worked=row.total_hours if row.total_hours is not None else Decimal("0"),
            tag_work_minutes=row.tag_work_minutes,
            activity_minutes=row.activity_minutes,
            has_exception=row.has_exception,
            exception_type=row.exception_type,
            exception_notes=row.exception_notes,
            status_inferred=inferred,
        )
