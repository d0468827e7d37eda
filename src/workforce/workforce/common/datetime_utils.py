from __future__ import annotations

import re
from datetime import date, datetime, time
from typing import Optional

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_DMY_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_CLOCK = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?\s*([AaPp][Mm])?$")


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_attendance_date(value: str) -> Optional[date]:
    """Parse ``YYYY-MM-DD`` or ``DD/MM/YYYY``; ``None`` when unparseable."""
    v = (value or "").strip()
    try:
        if _ISO_DATE.match(v):
            return parse_iso_date(v)
        m = _DMY_DATE.match(v)
        if m:
            day, month, year = (int(g) for g in m.groups())
            return date(year, month, day)
    except ValueError:
        return None
    return None


def parse_clock(value: str) -> Optional[time]:
    """Parse ``H:MM``, ``HH:MM:SS`` with optional AM/PM suffix."""
    m = _CLOCK.match((value or "").strip())
    if not m:
        return None

    hours, minutes = int(m.group(1)), int(m.group(2))
    seconds = int(m.group(3) or 0)
    meridiem = (m.group(4) or "").upper()
    if meridiem:
        if not 1 <= hours <= 12:
            return None
        hours = hours % 12 + (12 if meridiem == "PM" else 0)

    try:
        return time(hour=hours, minute=minutes, second=seconds)
    except ValueError:
        return None


def at_date(day: date, value: str) -> Optional[datetime]:
    """Anchor a clock string on the attendance date."""
    t = parse_clock(value)
    return datetime.combine(day, t) if t else None


def minutes_between(start: str, end: str) -> Optional[int]:
    a, b = parse_clock(start), parse_clock(end)
    if a is None or b is None:
        return None
    return (b.hour * 60 + b.minute) - (a.hour * 60 + a.minute)


def today_local() -> date:
    """Current local date.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now().date()


def now_local() -> datetime:
    return datetime.now()
