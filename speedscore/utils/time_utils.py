"""Clock-time and duration helpers for speedgolf scorecards."""

import re
from typing import Any, Dict, Optional

from speedscore.utils.logger_config import get_logger

logger = get_logger("time_utils")

NO_TIME = "--:--"

_ZERO_MMSS = re.compile(r'^0{1,2}:0{1,2}$')
_ZERO_HHMMSS = re.compile(r'^0{1,2}:0{1,2}:0{1,2}$')
_MMSS = re.compile(r'^\d{1,2}:\d{2}$')
_HHMMSS = re.compile(r'^\d{1,2}:\d{2}:\d{2}$')

# Realistic golf clock hours, inclusive
FIRST_GOLF_HOUR = 6
LAST_GOLF_HOUR = 20


def _split_clock(value: str):
    """Split ``"hh:mm[:ss] [AM|PM]"`` into hour, minute, second, period."""
    parts = value.strip().split(" ")
    period = parts[1].upper() if len(parts) > 1 else None
    numbers = [int(p) for p in parts[0].split(":")]
    hours, minutes = numbers[0], numbers[1]
    seconds = numbers[2] if len(numbers) > 2 else 0
    return hours, minutes, seconds, period


def _to_24_hour(hours: int, period: Optional[str]) -> int:
    if period == "PM" and hours != 12:
        return hours + 12
    if period == "AM" and hours == 12:
        return 0
    return hours


def convert_to_24_hour(value: Optional[str]) -> str:
    """``"01:05 PM"`` -> ``"13:05:00"``; empty for missing times."""
    if not value or value == NO_TIME:
        return ""
    hours, minutes, seconds, period = _split_clock(value)
    return f"{_to_24_hour(hours, period):02d}:{minutes:02d}:{seconds:02d}"


def format_to_ampm(value: Optional[str]) -> str:
    """``"13:05:00"`` -> ``"01:05:00 PM"``; empty for missing times."""
    if not value or value == NO_TIME:
        return ""
    hours, minutes, seconds, _ = _split_clock(value)
    period = "PM" if hours >= 12 else "AM"
    return f"{hours % 12 or 12:02d}:{minutes:02d}:{seconds:02d} {period}"


def calculate_time_from_finish_and_start(start_time: Optional[str], finish_time: Optional[str]) -> str:
    """
    Elapsed ``m:ss`` between two 12-hour clock times.

    A PM start with an AM finish is treated as crossing midnight. Returns
    ``"--:--"`` when either time is missing or the finish is not after the
    start.
    """
    if not start_time or not finish_time or NO_TIME in (start_time, finish_time):
        return NO_TIME

    def to_seconds(value: str) -> int:
        hours, minutes, seconds, period = _split_clock(value)
        return _to_24_hour(hours, period) * 3600 + minutes * 60 + seconds

    start_seconds = to_seconds(start_time)
    finish_seconds = to_seconds(finish_time)
    if "PM" in start_time.upper() and "AM" in finish_time.upper():
        finish_seconds += 86400

    diff = finish_seconds - start_seconds
    if diff <= 0:
        return NO_TIME
    return f"{diff // 60}:{diff % 60:02d}"


def mmss_to_seconds(value: Optional[str]) -> int:
    """Parse ``mm:ss`` or ``hh:mm:ss`` into seconds; 0 for missing or bad input."""
    if not value or value == NO_TIME:
        return 0
    try:
        parts = [int(p) for p in value.split(":")]
    except ValueError:
        logger.warning(f"mmss_to_seconds: invalid time format: {value!r}")
        return 0

    if len(parts) == 2:
        return parts[0] * 60 + parts[1]
    if len(parts) == 3:
        return parts[0] * 3600 + parts[1] * 60 + parts[2]

    logger.warning(f"mmss_to_seconds: invalid time format: {value!r}")
    return 0


def seconds_to_mmss(seconds: Optional[float]) -> str:
    """``330`` -> ``"5:30"``; ``"--:--"`` for missing or non-positive values."""
    if not seconds or seconds <= 0:
        return NO_TIME
    seconds = int(seconds)
    return f"{seconds // 60}:{seconds % 60:02d}"


def time_to_par(actual_seconds: Optional[int], par_seconds: Optional[int]) -> str:
    """``(E)``, ``(+1:30)`` or ``(-0:45)``; empty if either value is missing."""
    if not actual_seconds or not par_seconds:
        return ""
    diff = int(actual_seconds - par_seconds)
    if diff == 0:
        return "(E)"
    sign = "-" if diff < 0 else "+"
    diff = abs(diff)
    return f"({sign}{diff // 60}:{diff % 60:02d})"


def is_real_time_data(hole_time: Optional[str]) -> bool:
    """True if a hole time was actually entered (not blank, placeholder or zero)."""
    if not hole_time or hole_time == NO_TIME:
        return False
    parts = hole_time.split(":")
    if len(parts) == 2 and _ZERO_MMSS.match(hole_time):
        return False
    if len(parts) == 3 and _ZERO_HHMMSS.match(hole_time):
        return False
    return True


def is_real_duration_data(value: Any) -> bool:
    """True for a non-zero ``mm:ss`` duration."""
    if not value or not isinstance(value, str):
        return False
    return bool(_MMSS.match(value)) and not _ZERO_MMSS.match(value)


def is_real_timestamp_data(value: Any) -> bool:
    """True for a non-zero ``hh:mm:ss`` clock time within golf hours."""
    if not value or not isinstance(value, str):
        return False
    if not _HHMMSS.match(value) or _ZERO_HHMMSS.match(value):
        return False
    return FIRST_GOLF_HOUR <= int(value.split(":")[0]) <= LAST_GOLF_HOUR


def has_real_time_data_in_round(round_data: Optional[Dict[Any, str]]) -> bool:
    if not round_data:
        return False
    return any(is_real_time_data(t) for t in round_data.values())


def has_real_duration_data_in_round(round_data: Optional[Dict[Any, str]]) -> bool:
    if not round_data:
        return False
    return any(is_real_duration_data(t) for t in round_data.values())


def has_real_timestamp_data_in_round(round_data: Optional[Dict[Any, str]]) -> bool:
    if not round_data:
        return False
    return any(is_real_timestamp_data(t) for t in round_data.values())
