"""
Scorecard display arithmetic.

Authoritative scores are computed by the backend; these helpers mirror them
for display. Par totals follow the accumulator rule: only holes that have
entered data contribute their par, so a partial round compares against the
par of the holes actually played.

Scores and hole times are mappings keyed by 1-based hole number (``int`` or
``str`` keys are both accepted).
"""

from enum import Enum
from typing import Any, Dict, Mapping, Optional

from speedscore.models.models import Gender, Tee
from speedscore.utils.time_utils import NO_TIME, is_real_time_data, mmss_to_seconds


class HoleRange(str, Enum):
    FULL = "full"
    FRONT = "front"
    BACK = "back"

    @property
    def holes(self) -> range:
        if self is HoleRange.FRONT:
            return range(1, 10)
        if self is HoleRange.BACK:
            return range(10, 19)
        return range(1, 19)


def _hole_entry(values: Optional[Mapping], hole: int) -> Any:
    if not values:
        return None
    if hole in values:
        return values[hole]
    return values.get(str(hole))


def _has_score(scores: Optional[Mapping], hole: int) -> bool:
    value = _hole_entry(scores, hole)
    return value is not None and value != "" and value != 0 and value != "0"


def _strokes(scores: Optional[Mapping], hole: int) -> int:
    try:
        return int(_hole_entry(scores, hole) or 0)
    except (TypeError, ValueError):
        return 0


def _format_mmss(total_seconds: int) -> str:
    return f"{total_seconds // 60:02d}:{total_seconds % 60:02d}"


def _format_difference(seconds: int) -> str:
    seconds = abs(seconds)
    return f"{seconds // 60}:{seconds % 60:02d}"


def total_strokes(scores: Optional[Mapping], hole_range: HoleRange = HoleRange.FULL) -> int:
    return sum(_strokes(scores, hole) for hole in hole_range.holes)


def out_strokes(scores: Optional[Mapping]) -> int:
    return total_strokes(scores, HoleRange.FRONT)


def in_strokes(scores: Optional[Mapping]) -> int:
    return total_strokes(scores, HoleRange.BACK)


def course_par(tee: Tee, gender: str = Gender.MENS.value, hole_range: HoleRange = HoleRange.FULL) -> int:
    """Stroke par for every hole in the range, played or not"""
    return sum(tee.hole_par(hole, gender) for hole in hole_range.holes)


def stroke_par(
    scores: Optional[Mapping],
    tee: Tee,
    gender: str = Gender.MENS.value,
    hole_range: HoleRange = HoleRange.FULL
) -> int:
    """Stroke par of the holes that have a score entered"""
    return sum(tee.hole_par(hole, gender) for hole in hole_range.holes if _has_score(scores, hole))


def total_time(hole_times: Optional[Mapping], hole_range: HoleRange = HoleRange.FULL) -> int:
    """Elapsed seconds over the holes with a real time entered"""
    total = 0
    for hole in hole_range.holes:
        value = _hole_entry(hole_times, hole)
        if is_real_time_data(value):
            total += mmss_to_seconds(value)
    return total


def time_par(
    hole_times: Optional[Mapping],
    tee: Tee,
    gender: str = Gender.MENS.value,
    hole_range: HoleRange = HoleRange.FULL
) -> int:
    """Time par in seconds of the holes that have a time entered"""
    return sum(
        tee.hole_time_par(hole, gender)
        for hole in hole_range.holes
        if is_real_time_data(_hole_entry(hole_times, hole))
    )


def calculate_sgs(strokes: int, elapsed_time: Optional[str]) -> str:
    """
    Speedgolf score from strokes and an ``MM:SS`` elapsed time.

    Each stroke counts as one minute; seconds carry into minutes.

    Example:
        calculate_sgs(80, "55:30") -> "135:30"
    """
    if not strokes or not elapsed_time or elapsed_time == NO_TIME:
        return NO_TIME
    elapsed = mmss_to_seconds(elapsed_time)
    return _format_mmss(strokes * 60 + elapsed)


def segment_sgs(
    scores: Optional[Mapping],
    hole_times: Optional[Mapping],
    hole_range: HoleRange = HoleRange.FULL
) -> Dict[str, Any]:
    """
    SGS breakdown over a range of holes.

    Only holes with a score count; their time counts when it is real.

    Returns:
        Dict with ``strokes``, ``time_seconds``, ``sgs`` (``MM:SS`` or
        ``"--:--"`` when no hole was scored) and ``sgs_seconds``
    """
    strokes = 0
    seconds = 0
    scored = False
    for hole in hole_range.holes:
        if not _has_score(scores, hole):
            continue
        scored = True
        strokes += _strokes(scores, hole)
        value = _hole_entry(hole_times, hole)
        if is_real_time_data(value):
            seconds += mmss_to_seconds(value)

    if not scored:
        return {"strokes": 0, "time_seconds": 0, "sgs": NO_TIME, "sgs_seconds": 0}

    sgs_seconds = strokes * 60 + seconds
    return {
        "strokes": strokes,
        "time_seconds": seconds,
        "sgs": _format_mmss(sgs_seconds),
        "sgs_seconds": sgs_seconds
    }


def sgs_to_par(
    scores: Optional[Mapping],
    hole_times: Optional[Mapping],
    tee: Tee,
    gender: str = Gender.MENS.value,
    hole_range: HoleRange = HoleRange.FULL
) -> Dict[str, Any]:
    """SGS against SGS par (stroke par plus time par) over the played holes"""
    breakdown = segment_sgs(scores, hole_times, hole_range)
    if breakdown["sgs"] == NO_TIME:
        return {"sgs": NO_TIME, "par": NO_TIME, "difference_seconds": 0}

    par_seconds = stroke_par(scores, tee, gender, hole_range) * 60 + time_par(hole_times, tee, gender, hole_range)
    return {
        "sgs": breakdown["sgs"],
        "par": _format_mmss(par_seconds),
        "difference_seconds": breakdown["sgs_seconds"] - par_seconds
    }


def format_strokes_to_par(strokes: int, par: int) -> str:
    """``"74 (+2)"``, ``"72 (E)"`` or ``"70 (-2)"``; empty when either is missing"""
    if not strokes or not par:
        return ""
    diff = strokes - par
    if diff == 0:
        return f"{strokes} (E)"
    return f"{strokes} ({diff:+d})"


def format_time_to_par(time_seconds: int, par_seconds: int) -> str:
    """``"55:30 (+0:30)"``; empty when either is missing"""
    if not time_seconds or not par_seconds:
        return ""
    display = _format_mmss(time_seconds)
    diff = time_seconds - par_seconds
    if diff == 0:
        return f"{display} (E)"
    sign = "+" if diff > 0 else "-"
    return f"{display} ({sign}{_format_difference(diff)})"


def format_sgs_to_par(sgs: Optional[str], sgs_par: Optional[str], difference_seconds: int) -> str:
    if not sgs or sgs == NO_TIME or not sgs_par:
        return sgs or NO_TIME
    if difference_seconds == 0:
        return f"{sgs} (E)"
    sign = "+" if difference_seconds > 0 else "-"
    return f"{sgs} ({sign}{_format_difference(difference_seconds)})"
