from __future__ import annotations

from enum import Enum


class AttendanceStatus(str, Enum):
    """Normalized attendance status stored per employee and day."""

    PRESENT = "PRESENT"
    ABSENT = "ABSENT"
    LEAVE_APPROVED = "LEAVE_APPROVED"
    WFH_APPROVED = "WFH_APPROVED"
    LATE = "LATE"
    HALF_DAY = "HALF_DAY"


class ImportSource(str, Enum):
    """Which parser produced a record."""

    SRP = "SRP_FILE"
    CSV = "csv"


class ImportFileType(str, Enum):
    ATTENDANCE_SRP = "ATTENDANCE_SRP"
    ATTENDANCE_CSV = "ATTENDANCE_CSV"


class UploadStatus(str, Enum):
    """Lifecycle of one upload attempt (PROCESSING is the only non-terminal state)."""

    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    PARTIALLY_COMPLETED = "PARTIALLY_COMPLETED"
    FAILED = "FAILED"


class ExceptionType(str, Enum):
    """Attendance exceptions flagged by the manual CSV export."""

    WORKED_ON_APPROVED_LEAVE = "WORKED_ON_APPROVED_LEAVE"
    NO_WORK_ON_WFH = "NO_WORK_ON_WFH"
    ABSENT_DESPITE_DENIAL = "ABSENT_DESPITE_DENIAL"
    WORKED_DESPITE_DENIAL = "WORKED_DESPITE_DENIAL"
    ATTENDANCE_WORK_MISMATCH = "ATTENDANCE_WORK_MISMATCH"
    MISSING_CHECKOUT = "MISSING_CHECKOUT"
    WORK_WITHOUT_CHECKIN = "WORK_WITHOUT_CHECKIN"


class UpsertOutcome(str, Enum):
    CREATED = "CREATED"
    UPDATED = "UPDATED"
