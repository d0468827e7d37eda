from __future__ import annotations

from ...core.constants import HALF_DAY_HOURS
from ...core.enums import AttendanceStatus
from .base import Evidence, InferencePolicy


class SrpInferencePolicy(InferencePolicy):
    """Device export: a lone punch is a short day."""

    def __init__(self, half_day_hours: float = HALF_DAY_HOURS):
        self._half_day_hours = half_day_hours

    def decide_partial(self, evidence: Evidence) -> AttendanceStatus:
        if evidence.hours_worked < self._half_day_hours:
            return AttendanceStatus.HALF_DAY
        return AttendanceStatus.PRESENT
