from __future__ import annotations

from ...core.enums import AttendanceStatus
from .base import Evidence, InferencePolicy


class CsvInferencePolicy(InferencePolicy):
    """Manual export: a lone punch without hours is recorded as late."""

    def decide_partial(self, evidence: Evidence) -> AttendanceStatus:
        return AttendanceStatus.LATE
