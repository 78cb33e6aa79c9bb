"""
Calendar date and day-offset conversion for tournament schedules.

Tournament dates are handled as plain calendar dates. Strings are read from
their ``YYYY-MM-DD`` prefix (any ``T...`` time part is discarded), so time of
day and timezone never influence a day count. A day offset is the number of
days from the tournament start date: offset 0 is "Day 1".

The backend stores absolute dates while schedules are edited as offsets, so
the helpers here convert in both directions and tolerate missing or malformed
input by logging and returning a neutral value rather than raising.
"""

from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Union

from speedscore.utils.logger_config import get_logger

logger = get_logger("date_offsets")

DateLike = Union[str, date, datetime]

API_DATE_FORMAT = "%Y-%m-%d"


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def parse_local_date(value: Optional[DateLike]) -> Optional[date]:
    """
    Parse a date-like value into a calendar date.

    Args:
        value: ``YYYY-MM-DD`` string (an ISO time suffix is ignored), ``date``
            or ``datetime``

    Returns:
        The calendar date, or None if the value is missing or invalid
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip().split("T")[0]
    if not text:
        return None
    try:
        return datetime.strptime(text, API_DATE_FORMAT).date()
    except ValueError:
        return None


def format_date_to_string(value: Optional[date]) -> Optional[str]:
    """Format a calendar date as ``YYYY-MM-DD``."""
    if value is None:
        return None
    return value.strftime(API_DATE_FORMAT)


def format_date_for_api(value: Optional[DateLike]) -> Optional[str]:
    """Return the ``YYYY-MM-DD`` part of a date string the backend expects."""
    if not value:
        return None
    if isinstance(value, (date, datetime)):
        return format_date_to_string(parse_local_date(value))
    return value.split("T")[0]


def convert_date_to_offset(target: Optional[DateLike], start_date: Optional[DateLike]) -> int:
    """
    Convert an absolute date to a day offset from the tournament start date.

    Args:
        target: The absolute date
        start_date: Tournament start date

    Returns:
        Whole days from ``start_date`` to ``target``; negative when the target
        is before the start. Missing or invalid input yields 0.

    Example:
        convert_date_to_offset("2025-08-17", "2025-08-15") -> 2
    """
    if not target or not start_date:
        logger.warning(f"convert_date_to_offset: missing parameters (date={target!r}, start={start_date!r})")
        return 0

    target_day = parse_local_date(target)
    start_day = parse_local_date(start_date)
    if target_day is None or start_day is None:
        logger.error(f"convert_date_to_offset: invalid date values (date={target!r}, start={start_date!r})")
        return 0

    return (target_day - start_day).days


def convert_offset_to_date(day_offset: Any, start_date: Optional[DateLike]) -> str:
    """
    Convert a day offset to an absolute ``YYYY-MM-DD`` date.

    Args:
        day_offset: Whole number of days from the start (may be negative)
        start_date: Tournament start date

    Returns:
        The absolute date. A non-integer offset yields the start date itself;
        a missing or invalid start date yields an empty string.

    Example:
        convert_offset_to_date(2, "2025-08-15") -> "2025-08-17"
    """
    start_day = parse_local_date(start_date)

    if not _is_int(day_offset):
        logger.warning(f"convert_offset_to_date: invalid offset {day_offset!r}")
        return format_date_to_string(start_day) or ""

    if start_day is None:
        if start_date:
            logger.error(f"convert_offset_to_date: invalid start date {start_date!r}")
        else:
            logger.warning("convert_offset_to_date: missing start date")
        return ""

    try:
        return format_date_to_string(start_day + timedelta(days=day_offset))
    except OverflowError:
        logger.error(f"convert_offset_to_date: offset {day_offset} out of range for {start_day}")
        return ""


def add_days_to_date_string(value: Optional[DateLike], days: int) -> Optional[str]:
    """Add ``days`` (may be negative) to a date string."""
    parsed = parse_local_date(value)
    if parsed is None:
        return None
    return format_date_to_string(parsed + timedelta(days=days))


def get_days_difference(from_date: Optional[DateLike], to_date: Optional[DateLike]) -> int:
    """Days from ``from_date`` to ``to_date``, or 0 if either is unusable."""
    start = parse_local_date(from_date)
    end = parse_local_date(to_date)
    if start is None or end is None:
        return 0
    return (end - start).days


def generate_date_range(start_date: Optional[DateLike], end_date: Optional[DateLike]) -> List[str]:
    """All dates from start to end inclusive, as ``YYYY-MM-DD`` strings."""
    start = parse_local_date(start_date)
    end = parse_local_date(end_date)
    if start is None or end is None:
        if start_date and end_date:
            logger.error(f"generate_date_range: invalid date values ({start_date!r}, {end_date!r})")
        return []

    return [format_date_to_string(start + timedelta(days=i)) for i in range((end - start).days + 1)]


def get_tournament_duration(start_date: Optional[DateLike], end_date: Optional[DateLike]) -> int:
    """
    Number of tournament days, counting both the start and the end date.

    Returns 0 when either date is missing or invalid.
    """
    start = parse_local_date(start_date)
    end = parse_local_date(end_date)
    if start is None or end is None:
        return 0
    return (end - start).days + 1


def _display_date(value: date) -> str:
    # M/D/YYYY without zero padding
    return f"{value.month}/{value.day}/{value.year}"


def format_date(value: Optional[DateLike], month_style: str = "long") -> str:
    """
    Format a date for display, e.g. ``August 15, 2025``.

    Args:
        value: Date to format
        month_style: ``"long"`` for full month names, ``"short"`` for
            abbreviations

    Returns:
        The formatted date; unparseable strings are returned unchanged
    """
    if not value:
        return ""
    parsed = parse_local_date(value)
    if parsed is None:
        return value if isinstance(value, str) else ""
    month = parsed.strftime("%b" if month_style == "short" else "%B")
    return f"{month} {parsed.day}, {parsed.year}"


def format_date_short(value: Optional[DateLike]) -> str:
    return format_date(value, month_style="short")


def generate_day_options(start_date: Optional[DateLike], end_date: Optional[DateLike]) -> List[Dict[str, Any]]:
    """
    Build the list of selectable tournament days.

    Example:
        generate_day_options("2025-08-15", "2025-08-16") ->
        [{"value": 0, "label": "Day 1 (8/15/2025)", "date": "2025-08-15"},
         {"value": 1, "label": "Day 2 (8/16/2025)", "date": "2025-08-16"}]
    """
    if not start_date or not end_date:
        logger.warning(f"generate_day_options: missing dates ({start_date!r}, {end_date!r})")
        return []

    start = parse_local_date(start_date)
    end = parse_local_date(end_date)
    if start is None or end is None:
        logger.error(f"generate_day_options: invalid date values ({start_date!r}, {end_date!r})")
        return []
    if end < start:
        logger.warning(f"generate_day_options: end date {end} is before start date {start}")
        return []

    options = []
    for day_offset in range((end - start).days + 1):
        current = start + timedelta(days=day_offset)
        options.append({
            "value": day_offset,
            "label": f"Day {day_offset + 1} ({_display_date(current)})",
            "date": format_date_to_string(current),
        })
    return options


def validate_day_offset(day_offset: Any, start_date: Optional[DateLike], end_date: Optional[DateLike]) -> bool:
    """Check that an offset falls within ``[0, end - start]``."""
    if not _is_int(day_offset):
        return False

    start = parse_local_date(start_date)
    end = parse_local_date(end_date)
    if start is None or end is None:
        return False

    return 0 <= day_offset <= (end - start).days


def convert_rounds_to_offsets(rounds: Any, start_date: Optional[DateLike]) -> List[Dict[str, Any]]:
    """
    Add a ``dayOffset`` to each round derived from its ``date``.

    Rounds without a date get offset 0. The input list is not modified.
    """
    if not isinstance(rounds, list) or not start_date:
        logger.warning("convert_rounds_to_offsets: invalid parameters")
        return rounds if isinstance(rounds, list) else []

    converted = []
    for round_data in rounds:
        if not round_data.get("date"):
            logger.warning(f"convert_rounds_to_offsets: round missing date field: {round_data}")
            converted.append({**round_data, "dayOffset": 0})
            continue
        converted.append({**round_data, "dayOffset": convert_date_to_offset(round_data["date"], start_date)})
    return converted


def convert_rounds_to_absolute_dates(rounds: Any, start_date: Optional[DateLike]) -> List[Dict[str, Any]]:
    """
    Set each round's ``date`` from its ``dayOffset``.

    Rounds without an integer ``dayOffset`` are passed through untouched.
    """
    if not isinstance(rounds, list) or not start_date:
        logger.warning("convert_rounds_to_absolute_dates: invalid parameters")
        return rounds if isinstance(rounds, list) else []

    converted = []
    for round_data in rounds:
        if not _is_int(round_data.get("dayOffset")):
            logger.warning(f"convert_rounds_to_absolute_dates: round missing dayOffset field: {round_data}")
            converted.append(round_data)
            continue
        converted.append({**round_data, "date": convert_offset_to_date(round_data["dayOffset"], start_date)})
    return converted


def _offset_bounds(position: int, offsets: List[Optional[int]]) -> tuple:
    """Smallest and largest offset allowed at ``position`` given its neighbours."""
    min_allowed = 0
    for earlier in offsets[:position]:
        if _is_int(earlier):
            min_allowed = max(min_allowed, earlier)

    max_allowed = None
    for later in offsets[position + 1:]:
        if _is_int(later):
            max_allowed = later if max_allowed is None else min(max_allowed, later)

    return min_allowed, max_allowed


def calculate_division_round_options(
    min_date: Optional[DateLike],
    max_date: Optional[DateLike],
    all_rounds: Optional[Iterable[Dict[str, Any]]]
) -> Dict[int, List[Dict[str, Any]]]:
    """
    Day options for every round of a division under ordering constraints.

    A round may not be scheduled before any earlier round nor after any later
    round. Options violating that are returned with ``disabled=True`` and a
    reason appended to the label.

    Args:
        min_date: Tournament start date
        max_date: Tournament end date
        all_rounds: Round dicts carrying ``dayOffset``

    Returns:
        Mapping of round position to its option list
    """
    if not min_date or not max_date or all_rounds is None:
        logger.warning("calculate_division_round_options: missing required parameters")
        return {}

    rounds = list(all_rounds)
    base_options = generate_day_options(min_date, max_date)
    offsets = [r.get("dayOffset") if r else None for r in rounds]

    round_options: Dict[int, List[Dict[str, Any]]] = {}
    for position in range(len(rounds)):
        min_allowed, max_allowed = _offset_bounds(position, offsets)
        options = []
        for option in base_options:
            reason = ""
            if option["value"] < min_allowed:
                reason = f" (Round {position + 1} must be on or after Day {min_allowed + 1})"
            elif max_allowed is not None and option["value"] > max_allowed:
                reason = f" (Round {position + 1} must be on or before Day {max_allowed + 1})"
            options.append({
                **option,
                "disabled": bool(reason),
                "label": option["label"] + reason,
            })
        round_options[position] = options

    return round_options
