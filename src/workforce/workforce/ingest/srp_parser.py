"""Parser for the fixed-device SRP attendance export.

The export is loosely space-delimited text: a few header lines (company,
report title, report date) followed by one line per employee::

    1 TIPL1002 CARD55 John Doe S01 09:00 14:00 14:40 18:30 5.92 P

Columns are located by token shape rather than position because the employee
name spans a variable number of tokens and punch columns are only printed
when the device recorded them.
"""
from __future__ import annotations

import logging
import re
from datetime import date
from typing import List, Optional, Sequence

from ..common.datetime_utils import today_local
from ..core.enums import AttendanceStatus
from .model import ParseResult, RawRow
from .time_slots import TimeSlotAssigner

logger = logging.getLogger(__name__)

DATA_LINE = re.compile(r"^\s*\d+\s+[A-Za-z]+\d+")
HEADER_DATE = re.compile(r"(\d{2})/(\d{2})/(\d{4})")
EMPLOYEE_CODE = re.compile(r"^[A-Za-z]+\d+$")
SHIFT_CODE = re.compile(r"^S\d+$", re.IGNORECASE)
CLOCK = re.compile(r"^\d{1,2}:\d{2}$")
HOURS = re.compile(r"^\d+\.\d{2}$")

STATUS_TOKENS = {
    "P": AttendanceStatus.PRESENT,
    "PRESENT": AttendanceStatus.PRESENT,
    "MIS": AttendanceStatus.PRESENT,
    "A": AttendanceStatus.ABSENT,
    "ABSENT": AttendanceStatus.ABSENT,
}

MIN_TOKENS = 6

SRP_FIELDS = [
    "serialNo",
    "employeeCode",
    "cardNumber",
    "employeeName",
    "date",
    "status",
    "checkInTime",
    "breakOutTime",
    "breakInTime",
    "lunchOutTime",
    "lunchInTime",
    "checkOutTime",
    "hoursWorked",
    "shift",
    "shiftStart",
]


def find_data_start(lines: Sequence[str]) -> int:
    for i, line in enumerate(lines):
        if DATA_LINE.match(line.strip()):
            return i
    return -1


def find_header_date(header_lines: Sequence[str]) -> Optional[date]:
    for line in header_lines:
        for day, month, year in HEADER_DATE.findall(line):
            try:
                return date(int(year), int(month), int(day))
            except ValueError:
                continue
    return None


class SrpParser:
    def __init__(self, assigner: Optional[TimeSlotAssigner] = None):
        self._assigner = assigner or TimeSlotAssigner()

    def parse(
        self,
        text: str,
        *,
        attendance_date: Optional[date] = None,
        today: Optional[date] = None,
    ) -> ParseResult:
        lines = [line for line in (text or "").splitlines() if line.strip()]

        start = find_data_start(lines)
        if start == -1:
            return ParseResult(rows=[], errors=["No attendance data found in file"], fields=list(SRP_FIELDS))

        resolved = attendance_date or find_header_date(lines[:start]) or today or today_local()
        iso = resolved.strftime("%Y-%m-%d")

        rows: List[RawRow] = []
        for i in range(start, len(lines)):
            row = self.parse_line(lines[i], iso)
            if row is None:
                logger.debug("Skipping SRP line %d: %s", i + 1, lines[i].strip())
                continue
            rows.append(row)

        logger.info("Parsed %d records from SRP file (attendance date %s)", len(rows), iso)
        return ParseResult(rows=rows, fields=list(SRP_FIELDS), attendance_date=resolved)

    def parse_line(self, line: str, iso_date: str) -> Optional[RawRow]:
        """Tokenize one data line; ``None`` for lines that are not attendance data."""
        parts = line.split()
        if len(parts) < MIN_TOKENS:
            return None

        code_idx = next((j for j in range(1, len(parts)) if EMPLOYEE_CODE.match(parts[j])), -1)
        if code_idx == -1:
            return None

        shift_idx = next((j for j in range(code_idx + 2, len(parts)) if SHIFT_CODE.match(parts[j])), -1)
        if shift_idx == -1:
            return None

        card_number = parts[code_idx + 1] if code_idx + 1 < len(parts) else ""
        employee_name = " ".join(parts[code_idx + 2 : shift_idx])

        status = ""
        window_end = len(parts)
        for j in range(shift_idx + 1, len(parts)):
            token = parts[j].upper()
            if token in STATUS_TOKENS:
                status = STATUS_TOKENS[token].value
                window_end = j
                break

        shift_start = parts[shift_idx + 1] if shift_idx + 1 < window_end else ""

        times: List[str] = []
        hours = ""
        for token in parts[shift_idx + 1 : window_end]:
            if CLOCK.match(token):
                times.append(token.zfill(5))
            elif HOURS.match(token):
                hours = token

        # The shift start column is printed as the first punch; alone it is only the roster time.
        if len(times) == 1 and CLOCK.match(shift_start):
            times = []

        slots = self._assigner.assign(times)

        return {
            "serialNo": parts[0],
            "employeeCode": parts[code_idx].upper(),
            "cardNumber": card_number,
            "employeeName": employee_name,
            "date": iso_date,
            "status": status,
            **slots,
            "hoursWorked": hours,
            "shift": parts[shift_idx].upper(),
            "shiftStart": shift_start,
        }
