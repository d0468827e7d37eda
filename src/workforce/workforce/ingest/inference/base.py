from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal

from ...core.enums import AttendanceStatus


@dataclass(frozen=True)
class Evidence:
    """Attendance signals recovered from one row."""

    hours_worked: Decimal = Decimal("0")
    has_check_in: bool = False
    has_check_out: bool = False
    secondary_minutes: int = 0

    @property
    def has_work_evidence(self) -> bool:
        return (
            self.hours_worked > 0
            or (self.has_check_in and self.has_check_out)
            or self.secondary_minutes > 0
        )

    @property
    def has_partial_times(self) -> bool:
        return self.has_check_in != self.has_check_out


class InferencePolicy(ABC):
    """Strategy Pattern: decide a status when the row carries none.

    The evidence ladder is shared; sources differ only in how much they trust
    a row with a single punch.
    """

    def infer(self, evidence: Evidence) -> AttendanceStatus:
        if evidence.has_work_evidence:
            return AttendanceStatus.PRESENT
        if evidence.has_partial_times:
            return self.decide_partial(evidence)
        return AttendanceStatus.ABSENT

    @abstractmethod
    def decide_partial(self, evidence: Evidence) -> AttendanceStatus:
        raise NotImplementedError
