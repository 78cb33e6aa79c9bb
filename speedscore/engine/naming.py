"""Short unique names for tournaments, e.g. ``"Spring Speedgolf Open"`` -> ``"SSO26"``."""

import time
from datetime import date
from typing import Any, Iterable, Optional, Set

from speedscore.utils.date_offsets import DateLike, parse_local_date
from speedscore.utils.logger_config import get_logger

logger = get_logger("naming")

MAX_NUMERIC_SUFFIX = 100


def get_tournament_name_abbr(tournament_name: str) -> str:
    """First letter of every word"""
    return "".join(word[0] for word in tournament_name.split())


def _two_digit_year(start_date: Optional[DateLike]) -> str:
    parsed = parse_local_date(start_date) if start_date else None
    if start_date and parsed is None:
        logger.warning(f"Could not parse start date {start_date!r}, using current year")
    return str((parsed or date.today()).year)[-2:]


def _existing_names(existing: Optional[Iterable[Any]]) -> Set[str]:
    # Accept plain names or backend tournament documents
    names = set()
    for item in existing or []:
        if isinstance(item, str):
            names.add(item)
        elif isinstance(item, dict):
            unique_name = (item.get("basicInfo") or {}).get("uniqueName")
            if unique_name:
                names.add(unique_name)
    return names


def generate_unique_tournament_name(
    tournament_name: str,
    existing: Optional[Iterable[Any]] = None,
    start_date: Optional[DateLike] = None
) -> str:
    """
    Generate a tournament short name not already taken.

    The base name is the initials of the tournament name followed by the
    two-digit start year. On a collision the first word is spelled out one
    more letter at a time (``SpSO26``, ``SprSO26``, ...), then numeric
    suffixes ``1``..``99`` are tried, and finally a time-based suffix.

    Args:
        tournament_name: Full tournament name
        existing: Unique names already taken, or tournament documents
        start_date: Tournament start date; the current year is used if missing

    Returns:
        The unique name, or an empty string for a blank tournament name
    """
    if not tournament_name or not tournament_name.strip():
        return ""

    words = tournament_name.split()
    year = _two_digit_year(start_date)
    taken = _existing_names(existing)

    base = get_tournament_name_abbr(tournament_name) + year
    if base not in taken:
        return base

    other_initials = "".join(word[0] for word in words[1:])
    for length in range(2, len(words[0]) + 1):
        candidate = words[0][:length] + other_initials + year
        if candidate not in taken:
            return candidate

    for counter in range(1, MAX_NUMERIC_SUFFIX):
        candidate = f"{base}{counter}"
        if candidate not in taken:
            return candidate

    candidate = base + str(int(time.time() * 1000))[-3:]
    logger.warning(f"Numeric suffixes exhausted for {base}, using {candidate}")
    return candidate
