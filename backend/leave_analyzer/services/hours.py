"""Worked-hours arithmetic for a single in/out punch pair."""

from __future__ import annotations

import math
import re
from datetime import datetime, time
from typing import Union

RawTime = Union[time, datetime, str, int, float, None]

_clock_re = re.compile(r"^\s*(\d{1,2}):(\d{2})")


def parse_clock(value: RawTime) -> time | None:
    """
    Read a wall-clock punch as hour:minute, or None when absent/unreadable.

    Accepts ``time``/``datetime`` cells, ``"HH:MM"`` text (trailing seconds
    or suffixes are ignored) and Excel day-fraction numbers (0 <= x < 1).
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return time(value.hour, value.minute)
    if isinstance(value, time):
        return time(value.hour, value.minute)
    if isinstance(value, str):
        match = _clock_re.match(value)
        if match is None:
            return None
        hour, minute = int(match.group(1)), int(match.group(2))
        if hour > 23 or minute > 59:
            return None
        return time(hour, minute)
    if isinstance(value, (int, float)):
        if not math.isfinite(value) or not 0 <= value < 1:
            return None
        total_minutes = int(round(value * 24 * 60))
        if total_minutes >= 24 * 60:
            return None
        return time(total_minutes // 60, total_minutes % 60)
    return None


def compute_worked_hours(in_time: RawTime, out_time: RawTime) -> float:
    """
    Hours between two punches, rounded to 2 decimals.

    Missing or unreadable punches give 0.  Out-before-in is clamped to 0;
    there is no overnight wrap.
    """
    start = parse_clock(in_time)
    end = parse_clock(out_time)
    if start is None or end is None:
        return 0.0

    minutes = (end.hour * 60 + end.minute) - (start.hour * 60 + start.minute)
    return max(0.0, round(minutes / 60, 2))
