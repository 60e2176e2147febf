"""Day status classification against the fixed weekly schedule."""

from __future__ import annotations

from enum import Enum
from types import MappingProxyType
from typing import NamedTuple

from leave_analyzer.services.hours import RawTime, compute_worked_hours


class DayStatus(str, Enum):
    PRESENT = "Present"
    LEAVE = "Leave"
    HOLIDAY = "Holiday"
    # Reserved: no weekday maps to it under the current schedule
    WEEKEND = "Weekend"


WEEKLY_SCHEDULE = MappingProxyType(
    {
        "Monday": 8.5,
        "Tuesday": 8.5,
        "Wednesday": 8.5,
        "Thursday": 8.5,
        "Friday": 8.5,
        "Saturday": 4.0,
        "Sunday": 0.0,
    }
)


class Classification(NamedTuple):
    status: DayStatus
    expected_hours: float
    worked_hours: float


def expected_hours_for(day_of_week: str) -> float:
    return WEEKLY_SCHEDULE.get(day_of_week, 0.0)


def classify(
    day_of_week: str,
    in_time: RawTime,
    out_time: RawTime,
    worked_hours: float | None = None,
) -> Classification:
    """
    Assign the status and expected hours of one employee-day.

    Sunday is always a Holiday and its punches are discarded (worked hours 0).
    Saturday is a short working day and follows the weekday rules with its
    own expected hours.  A working day with no punches, or with punches that
    yield zero hours, is a Leave.
    """
    if day_of_week == "Sunday":
        return Classification(DayStatus.HOLIDAY, 0.0, 0.0)

    expected = expected_hours_for(day_of_week)

    if in_time is None and out_time is None:
        return Classification(DayStatus.LEAVE, expected, 0.0)

    if worked_hours is None:
        worked_hours = compute_worked_hours(in_time, out_time)
    if worked_hours == 0:
        return Classification(DayStatus.LEAVE, expected, 0.0)

    return Classification(DayStatus.PRESENT, expected, worked_hours)
