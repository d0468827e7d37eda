from __future__ import annotations

import csv
import io
import logging
import re
from typing import Dict, List, Sequence

from ..core.constants import CSV_REQUIRED_HEADERS
from .model import ParseResult, RawRow

logger = logging.getLogger(__name__)

CSV_FIELDS = [
    "employeeCode",
    "date",
    "status",
    "checkInTime",
    "checkOutTime",
    "totalHours",
    "tagWorkMinutes",
    "activityMinutes",
    "hasException",
    "exceptionType",
    "exceptionNotes",
]


def _header_key(value: str) -> str:
    return re.sub(r"[^a-z0-9]", "", (value or "").lower())


_HEADER_ALIASES: Dict[str, str] = {_header_key(name): name for name in CSV_FIELDS}
_HEADER_ALIASES.update(
    {
        "empcode": "employeeCode",
        "attendancedate": "date",
        "checkin": "checkInTime",
        "checkout": "checkOutTime",
        "hoursworked": "totalHours",
    }
)


def canonical_header(value: str) -> str:
    """Map ``employee_code`` / ``Employee Code`` style headers onto the schema names."""
    cleaned = (value or "").strip().lstrip("\ufeff")
    return _HEADER_ALIASES.get(_header_key(cleaned), cleaned)


def missing_required_headers(fields: Sequence[str]) -> List[str]:
    return [h for h in CSV_REQUIRED_HEADERS if h not in fields]


class CsvParser:
    """Header-driven parser; every value stays a string for the row validator."""

    def parse(self, text: str) -> ParseResult:
        reader = csv.reader(io.StringIO(text or ""))
        try:
            records = [r for r in reader if any(cell.strip() for cell in r)]
        except csv.Error as e:
            logger.warning("CSV tokenizer failed at line %d: %s", reader.line_num, e)
            return ParseResult(rows=[], errors=[f"CSV parsing failed: {e}"])
        if not records:
            return ParseResult(rows=[], errors=["File is empty"])

        fields = [canonical_header(h) for h in records[0]]
        missing = missing_required_headers(fields)
        if missing:
            return ParseResult(rows=[], errors=["Missing required CSV headers"], fields=fields)

        rows: List[RawRow] = []
        for line_no, record in enumerate(records[1:], start=2):
            if len(record) != len(fields):
                logger.warning(
                    "CSV line %d has %d values for %d headers", line_no, len(record), len(fields)
                )
            padded = list(record[: len(fields)]) + [""] * max(0, len(fields) - len(record))
            rows.append({name: value for name, value in zip(fields, padded) if name})

        logger.info("Parsed %d records from CSV file", len(rows))
        return ParseResult(rows=rows, fields=fields)
