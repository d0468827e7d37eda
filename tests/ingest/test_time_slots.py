from __future__ import annotations

import pytest

from src.workforce.workforce.ingest.time_slots import SLOT_FIELDS, TimeSlotAssigner, TimeSlotRule


def _filled(slots: dict) -> dict:
    return {k: v for k, v in slots.items() if v}


def test_every_slot_is_always_present():
    assert set(TimeSlotAssigner().assign([])) == set(SLOT_FIELDS)


def test_two_readings_are_in_and_out():
    assert _filled(TimeSlotAssigner().assign(["09:00", "18:00"])) == {
        "checkInTime": "09:00",
        "checkOutTime": "18:00",
    }


def test_three_readings_include_break_out():
    assert _filled(TimeSlotAssigner().assign(["09:00", "13:00", "18:00"])) == {
        "checkInTime": "09:00",
        "breakOutTime": "13:00",
        "checkOutTime": "18:00",
    }


def test_four_readings_with_exactly_45_minutes_is_a_break():
    slots = _filled(TimeSlotAssigner().assign(["09:00", "13:00", "13:45", "18:00"]))

    assert slots == {
        "checkInTime": "09:00",
        "breakOutTime": "13:00",
        "breakInTime": "13:45",
        "checkOutTime": "18:00",
    }


def test_four_readings_with_46_minutes_is_a_lunch():
    slots = _filled(TimeSlotAssigner().assign(["09:00", "13:00", "13:46", "18:00"]))

    assert slots == {
        "checkInTime": "09:00",
        "lunchOutTime": "13:00",
        "lunchInTime": "13:46",
        "checkOutTime": "18:00",
    }


def test_six_readings_fill_every_slot():
    times = ["09:00", "11:00", "11:15", "13:00", "13:45", "18:00"]

    assert TimeSlotAssigner().assign(times) == {
        "checkInTime": "09:00",
        "breakOutTime": "11:00",
        "breakInTime": "11:15",
        "lunchOutTime": "13:00",
        "lunchInTime": "13:45",
        "checkOutTime": "18:00",
    }


@pytest.mark.parametrize(
    "times",
    [
        ["09:00", "10:00", "11:00", "12:00", "18:00"],
        ["08:00", "09:00", "10:00", "11:00", "12:00", "13:00", "19:00"],
    ],
)
def test_other_counts_use_first_and_last(times):
    assert _filled(TimeSlotAssigner().assign(times)) == {"checkInTime": times[0], "checkOutTime": times[-1]}


def test_single_reading_is_only_a_check_in():
    assert _filled(TimeSlotAssigner().assign(["09:10"])) == {"checkInTime": "09:10"}


def test_custom_rules_take_precedence():
    night = TimeSlotRule(2, lambda t: {"checkInTime": t[1], "checkOutTime": t[0]}, "reversed")

    assert _filled(TimeSlotAssigner([night]).assign(["06:00", "22:00"])) == {
        "checkInTime": "22:00",
        "checkOutTime": "06:00",
    }
