"""Positional assignment of SRP clock readings to attendance time slots.

Each rule maps a number of collected readings to named slots. Rules are tried
in order; a new device export variant is supported by adding a rule, without
touching the line scanner.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Sequence, Tuple

from ..common.datetime_utils import minutes_between
from ..core.constants import LUNCH_THRESHOLD_MINUTES

CHECK_IN = "checkInTime"
CHECK_OUT = "checkOutTime"
BREAK_OUT = "breakOutTime"
BREAK_IN = "breakInTime"
LUNCH_OUT = "lunchOutTime"
LUNCH_IN = "lunchInTime"

SLOT_FIELDS = (CHECK_IN, BREAK_OUT, BREAK_IN, LUNCH_OUT, LUNCH_IN, CHECK_OUT)


@dataclass(frozen=True)
class TimeSlotRule:
    count: int
    assign: Callable[[Sequence[str]], Dict[str, str]]
    description: str = ""

    def matches(self, times: Sequence[str]) -> bool:
        return len(times) == self.count


def _in_out(times: Sequence[str]) -> Dict[str, str]:
    return {CHECK_IN: times[0], CHECK_OUT: times[1]}


def _in_break_out(times: Sequence[str]) -> Dict[str, str]:
    return {CHECK_IN: times[0], BREAK_OUT: times[1], CHECK_OUT: times[2]}


def _in_pair_out(times: Sequence[str]) -> Dict[str, str]:
    gap = minutes_between(times[1], times[2])
    if gap is not None and gap > LUNCH_THRESHOLD_MINUTES:
        pair = {LUNCH_OUT: times[1], LUNCH_IN: times[2]}
    else:
        pair = {BREAK_OUT: times[1], BREAK_IN: times[2]}
    return {CHECK_IN: times[0], **pair, CHECK_OUT: times[3]}


def _in_break_lunch_out(times: Sequence[str]) -> Dict[str, str]:
    return {
        CHECK_IN: times[0],
        BREAK_OUT: times[1],
        BREAK_IN: times[2],
        LUNCH_OUT: times[3],
        LUNCH_IN: times[4],
        CHECK_OUT: times[5],
    }


DEFAULT_RULES: Tuple[TimeSlotRule, ...] = (
    TimeSlotRule(2, _in_out, "check-in, check-out"),
    TimeSlotRule(3, _in_break_out, "check-in, break-out, check-out"),
    TimeSlotRule(4, _in_pair_out, "check-in, lunch or break pair, check-out"),
    TimeSlotRule(6, _in_break_lunch_out, "check-in, break pair, lunch pair, check-out"),
)


def _first_last(times: Sequence[str]) -> Dict[str, str]:
    if not times:
        return {}
    if len(times) == 1:
        # A lone punch is a check-in; it is never both ends of the day.
        return {CHECK_IN: times[0]}
    return {CHECK_IN: times[0], CHECK_OUT: times[-1]}


class TimeSlotAssigner:
    def __init__(self, rules: Sequence[TimeSlotRule] = DEFAULT_RULES):
        self._rules = tuple(rules)

    def assign(self, times: Sequence[str]) -> Dict[str, str]:
        """Return every slot field, empty string for slots without a reading."""
        mapped = None
        for rule in self._rules:
            if rule.matches(times):
                mapped = rule.assign(times)
                break
        if mapped is None:
            mapped = _first_last(times)
        return {name: mapped.get(name, "") for name in SLOT_FIELDS}
