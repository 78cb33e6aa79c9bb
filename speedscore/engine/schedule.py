"""
Tournament schedule expressed as day offsets from the start date.

A ``TournamentSchedule`` keeps the start date as an absolute calendar date and
everything else (end date, tee times, division rounds, registration window)
as integer day offsets. Every division round must stay within
``[0, end_date_offset]``: date edits that would break this are rejected with a
``DateConflictError`` and leave the schedule untouched.
"""

import copy
import re
from typing import Any, Dict, List, Optional

from speedscore.api.errors import DateConflictError, ScheduleError
from speedscore.models.models import entity_id
from speedscore.utils.config_manager import get_config
from speedscore.utils.date_offsets import (
    DateLike,
    calculate_division_round_options,
    convert_date_to_offset,
    convert_offset_to_date,
    format_date_for_api,
    format_date_to_string,
    generate_day_options,
    get_days_difference,
    parse_local_date,
)
from speedscore.utils.logger_config import get_logger

logger = get_logger("schedule")

START_DATE_CONFLICT_MESSAGE = (
    "You cannot change tournament start date because one or more division rounds would then be "
    "scheduled outside the tournament date range, based on their current offset from the tournament "
    "start date. Please schedule those rounds to occur earlier in the tournament date window before "
    "changing the start date."
)
END_DATE_CONFLICT_MESSAGE = (
    "You cannot change tournament end date because one or more division rounds would then be "
    "scheduled outside the tournament date range, based on their current offset from the tournament "
    "start date. Please schedule those rounds to occur earlier in the tournament date window before "
    "changing the end date."
)
START_AFTER_END_MESSAGE = "Tournament start date cannot be after the tournament end date."
END_BEFORE_START_MESSAGE = "Tournament end date cannot be before the tournament start date."
MAX_DIVISION_ROUNDS = 4

_TEE_TIME = re.compile(r'^([01]?\d|2[0-3]):[0-5]\d$')


def division_key(division: Dict[str, Any]) -> Optional[str]:
    """Key a division the way the schedule does: client id first, then backend id"""
    return division.get("clientId") or entity_id(division)


class RoundConflict:
    """A division round that would fall outside the tournament date range"""

    def __init__(self, division_id: str, round_index: int, day_offset: int, division_name: Optional[str] = None):
        self.division_id = division_id
        self.round_index = round_index
        self.day_offset = day_offset
        self.division_name = division_name or division_id

    @property
    def round_number(self) -> int:
        return self.round_index + 1

    def describe(self) -> str:
        return f"{self.division_name} Round {self.round_number} (Day {self.day_offset + 1})"

    def to_dict(self) -> Dict:
        return {
            "divisionId": self.division_id,
            "divisionName": self.division_name,
            "roundIndex": self.round_index,
            "dayOffset": self.day_offset
        }

    def __eq__(self, other) -> bool:
        if not isinstance(other, RoundConflict):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return f"RoundConflict({self.division_id!r}, {self.round_index}, {self.day_offset})"


class TournamentSchedule:
    def __init__(
        self,
        start_date: DateLike,
        end_date_offset: int = 0,
        tee_time_offsets: Optional[List[Dict[str, Any]]] = None,
        division_round_offsets: Optional[Dict[str, Dict[int, int]]] = None,
        division_names: Optional[Dict[str, str]] = None,
        registration_open_offset: Optional[int] = None,
        registration_close_offset: Optional[int] = None,
        withdrawal_deadline_offset: Optional[int] = None,
        default_tee_time: Optional[str] = None
    ):
        start = parse_local_date(start_date)
        if start is None:
            raise ScheduleError(f"Invalid tournament start date: {start_date!r}")

        config = get_config()
        self.start_date: str = format_date_to_string(start)
        if int(end_date_offset) < 0:
            raise ScheduleError(END_BEFORE_START_MESSAGE)
        self.end_date_offset: int = int(end_date_offset)
        self.default_tee_time = default_tee_time or config.get("tournament.default_tee_time", "07:00")
        self.tee_time_offsets: List[Dict[str, Any]] = [dict(t) for t in tee_time_offsets or []]
        self.division_round_offsets: Dict[str, Dict[int, int]] = {
            division_id: {int(index): offset for index, offset in offsets.items()}
            for division_id, offsets in (division_round_offsets or {}).items()
        }
        self.division_names: Dict[str, str] = dict(division_names or {})

        # Registration offsets are usually negative (days before the start)
        self.registration_open_offset = self._config_offset(
            registration_open_offset, "tournament.registration_open_offset", -30)
        self.registration_close_offset = self._config_offset(
            registration_close_offset, "tournament.registration_close_offset", -3)
        self.withdrawal_deadline_offset = self._config_offset(
            withdrawal_deadline_offset, "tournament.withdrawal_deadline_offset", -7)

        self.sync_tee_time_offsets()

    @staticmethod
    def _config_offset(value: Optional[int], key: str, fallback: int) -> int:
        if value is not None:
            return int(value)
        return int(get_config().get(key, fallback))

    # ------------------------------------------------------------------
    # Derived dates
    # ------------------------------------------------------------------

    @property
    def end_date(self) -> str:
        return convert_offset_to_date(self.end_date_offset, self.start_date)

    @property
    def duration_days(self) -> int:
        return self.end_date_offset + 1

    def date_for_offset(self, day_offset: int) -> str:
        return convert_offset_to_date(day_offset, self.start_date)

    def day_options(self) -> List[Dict[str, Any]]:
        return generate_day_options(self.start_date, self.end_date)

    def registration_dates(self) -> Dict[str, str]:
        return {
            "regStartDate": self.date_for_offset(self.registration_open_offset),
            "regEndDate": self.date_for_offset(self.registration_close_offset),
            "withdrawalDeadline": self.date_for_offset(self.withdrawal_deadline_offset)
        }

    # ------------------------------------------------------------------
    # Conflict detection
    # ------------------------------------------------------------------

    def find_conflicts(self, new_end_offset: int) -> List[RoundConflict]:
        """
        List every division round whose offset falls outside ``[0, new_end_offset]``.

        Args:
            new_end_offset: Candidate end date offset

        Returns:
            Conflicts ordered by division and round
        """
        conflicts = []
        for division_id, offsets in self.division_round_offsets.items():
            for round_index in sorted(offsets):
                day_offset = offsets[round_index]
                if day_offset < 0 or day_offset > new_end_offset:
                    conflicts.append(RoundConflict(
                        division_id, round_index, day_offset, self.division_names.get(division_id)
                    ))
        return conflicts

    def has_conflicts(self) -> bool:
        return bool(self.find_conflicts(self.end_date_offset))

    # ------------------------------------------------------------------
    # Date edits
    # ------------------------------------------------------------------

    def change_start_date(self, new_start: DateLike) -> None:
        """
        Move the start date while keeping the end date fixed.

        Round offsets stay relative to the start, so moving the start later
        shortens the window they must fit in.

        Raises:
            ScheduleError: If ``new_start`` is not a valid date
            DateConflictError: If the new range would leave rounds outside it;
                the schedule is left unchanged
        """
        start = self._require_date(new_start, "start")
        new_end_offset = get_days_difference(start, self.end_date)

        if new_end_offset < 0:
            raise DateConflictError(START_AFTER_END_MESSAGE)

        conflicts = self.find_conflicts(new_end_offset)
        if conflicts:
            logger.warning(
                f"Rejected start date change to {start}: "
                f"{', '.join(c.describe() for c in conflicts)} outside new range"
            )
            raise DateConflictError(START_DATE_CONFLICT_MESSAGE, conflicts)

        logger.info(f"Start date changed from {self.start_date} to {start}, end offset now {new_end_offset}")
        self.start_date = start
        self.end_date_offset = new_end_offset
        self.sync_tee_time_offsets()

    def shift_start_date(self, new_start: DateLike) -> None:
        """Move the whole schedule so it begins on ``new_start``"""
        start = self._require_date(new_start, "start")
        logger.info(f"Tournament shifted from {self.start_date} to {start}")
        self.start_date = start

    def change_end_date(self, new_end: DateLike) -> None:
        """
        Move the end date, keeping the start date and all round offsets.

        Raises:
            ScheduleError: If ``new_end`` is not a valid date
            DateConflictError: If the end would precede the start or any round
                would fall after it; the schedule is left unchanged
        """
        end = self._require_date(new_end, "end")
        new_end_offset = convert_date_to_offset(end, self.start_date)
        if new_end_offset < 0:
            raise DateConflictError(END_BEFORE_START_MESSAGE)
        self.set_end_date_offset(new_end_offset)

    def set_end_date_offset(self, end_date_offset: int) -> None:
        """Set the end offset directly; negative values are clamped to 0"""
        new_end_offset = max(0, int(end_date_offset))
        conflicts = self.find_conflicts(new_end_offset)
        if conflicts:
            logger.warning(
                f"Rejected end offset change to {new_end_offset}: "
                f"{', '.join(c.describe() for c in conflicts)} outside new range"
            )
            raise DateConflictError(END_DATE_CONFLICT_MESSAGE, conflicts)

        if new_end_offset != self.end_date_offset:
            logger.info(f"End date offset changed from {self.end_date_offset} to {new_end_offset}")
        self.end_date_offset = new_end_offset
        self.sync_tee_time_offsets()

    def _require_date(self, value: DateLike, label: str) -> str:
        parsed = parse_local_date(value)
        if parsed is None:
            raise ScheduleError(f"Invalid tournament {label} date: {value!r}")
        return format_date_to_string(parsed)

    # ------------------------------------------------------------------
    # Tee times
    # ------------------------------------------------------------------

    def sync_tee_time_offsets(self) -> None:
        """Keep exactly one tee time per tournament day, preserving existing start times"""
        existing = {t.get("dayOffset"): t.get("startTime") for t in self.tee_time_offsets}
        self.tee_time_offsets = [
            {"dayOffset": day, "startTime": existing.get(day) or self.default_tee_time}
            for day in range(self.end_date_offset + 1)
        ]

    def set_tee_time(self, day_offset: int, start_time: str) -> None:
        """Set the ``HH:MM`` first tee time for one tournament day."""
        if not 0 <= day_offset <= self.end_date_offset:
            raise ScheduleError(f"Day {day_offset + 1} is outside the tournament")
        if not start_time or not _TEE_TIME.match(start_time):
            raise ScheduleError(f"Invalid tee time {start_time!r}, expected HH:MM")
        self.tee_time_offsets[day_offset]["startTime"] = start_time

    # ------------------------------------------------------------------
    # Division rounds
    # ------------------------------------------------------------------

    def set_division(self, division_id: str, name: Optional[str] = None, round_count: int = 0) -> None:
        """
        Register a division with ``round_count`` rounds.

        New rounds default to consecutive days, capped at the last tournament
        day; rounds beyond ``round_count`` are dropped. A division has at most
        ``MAX_DIVISION_ROUNDS`` rounds.
        """
        if not 0 <= round_count <= MAX_DIVISION_ROUNDS:
            raise ScheduleError(f"A division must have between 0 and {MAX_DIVISION_ROUNDS} rounds, got {round_count}")
        offsets = self.division_round_offsets.setdefault(division_id, {})
        for index in range(round_count):
            if index not in offsets:
                offsets[index] = min(index, self.end_date_offset)
        for index in [i for i in offsets if i >= round_count]:
            del offsets[index]
        if name:
            self.division_names[division_id] = name

    def remove_division(self, division_id: str) -> None:
        self.division_round_offsets.pop(division_id, None)
        self.division_names.pop(division_id, None)

    def round_offsets(self, division_id: str) -> List[int]:
        offsets = self.division_round_offsets.get(division_id, {})
        return [offsets[i] for i in sorted(offsets)]

    def set_round_offset(self, division_id: str, round_index: int, day_offset: int, cascade: bool = False) -> None:
        """
        Schedule one round of a division on a tournament day.

        Rounds of a division must stay in order: a round may not be earlier
        than any previous round nor later than any following round. With
        ``cascade`` the out-of-order rounds are moved to the same day instead.

        Raises:
            ScheduleError: If the day is outside the tournament, or breaks
                round ordering without ``cascade``
        """
        if isinstance(day_offset, bool) or not isinstance(day_offset, int):
            raise ScheduleError(f"Invalid day offset {day_offset!r}")
        if not 0 <= day_offset <= self.end_date_offset:
            raise ScheduleError(
                f"Round {round_index + 1} must be between Day 1 and Day {self.end_date_offset + 1}"
            )

        offsets = self.division_round_offsets.setdefault(division_id, {})
        if cascade:
            for other_index, other_offset in offsets.items():
                if (other_index > round_index and other_offset < day_offset) or \
                        (other_index < round_index and other_offset > day_offset):
                    logger.debug(f"Division {division_id} round {other_index + 1} moved to day offset {day_offset}")
                    offsets[other_index] = day_offset
        for other_index, other_offset in offsets.items():
            if other_index < round_index and other_offset > day_offset:
                raise ScheduleError(f"Round {round_index + 1} must be on or after Day {other_offset + 1}")
            if other_index > round_index and other_offset < day_offset:
                raise ScheduleError(f"Round {round_index + 1} must be on or before Day {other_offset + 1}")

        offsets[round_index] = day_offset
        logger.debug(f"Division {division_id} round {round_index + 1} scheduled on day offset {day_offset}")

    def round_options(self, division_id: str) -> Dict[int, List[Dict[str, Any]]]:
        rounds = [{"dayOffset": offset} for offset in self.round_offsets(division_id)]
        return calculate_division_round_options(self.start_date, self.end_date, rounds)

    # ------------------------------------------------------------------
    # Conversion to and from backend documents
    # ------------------------------------------------------------------

    @classmethod
    def from_dates(cls, start_date: DateLike, end_date: Optional[DateLike] = None, **kwargs) -> "TournamentSchedule":
        """
        Build a schedule from absolute start and end dates.

        Raises:
            ScheduleError: If either date is invalid or the end precedes the start
        """
        if end_date is None:
            return cls(start_date, 0, **kwargs)
        if parse_local_date(start_date) is None:
            raise ScheduleError(f"Invalid tournament start date: {start_date!r}")
        if parse_local_date(end_date) is None:
            raise ScheduleError(f"Invalid tournament end date: {end_date!r}")
        return cls(start_date, convert_date_to_offset(end_date, start_date), **kwargs)

    @classmethod
    def from_tournament(cls, tournament: Dict[str, Any]) -> "TournamentSchedule":
        """
        Derive the offset schedule from a backend tournament document.

        Rounds carrying a date get their real offset, even when it lies
        outside the tournament, so stale schedules surface as conflicts.
        Undated rounds fall back to a stored ``dayOffset`` or their index.
        """
        basic_info = tournament.get("basicInfo") or {}
        start_date = format_date_for_api(basic_info.get("startDate"))
        if not start_date:
            raise ScheduleError("Tournament has no start date")

        end_date = basic_info.get("endDate")
        end_date_offset = convert_date_to_offset(end_date, start_date) if end_date else 0
        if end_date_offset < 0:
            logger.warning(f"Tournament end date {end_date} precedes start {start_date}, using single day")
            end_date_offset = 0

        tee_time_offsets = [
            {"dayOffset": convert_date_to_offset(t.get("date"), start_date), "startTime": t.get("startTime")}
            for t in basic_info.get("teeTimes") or []
            if t.get("date")
        ]

        division_round_offsets: Dict[str, Dict[int, int]] = {}
        division_names: Dict[str, str] = {}
        for division in tournament.get("divisions") or []:
            key = division_key(division)
            if key is None:
                continue
            division_names[key] = division.get("name") or key
            offsets = {}
            for index, round_data in enumerate(division.get("rounds") or []):
                if round_data.get("date"):
                    offsets[index] = convert_date_to_offset(round_data["date"], start_date)
                elif isinstance(round_data.get("dayOffset"), int):
                    offsets[index] = round_data["dayOffset"]
                else:
                    offsets[index] = index
            division_round_offsets[key] = offsets

        reg_info = tournament.get("regPaymentInfo") or {}

        def reg_offset(*keys: str) -> Optional[int]:
            for key in keys:
                if reg_info.get(key):
                    return convert_date_to_offset(reg_info[key], start_date)
            return None

        return cls(
            start_date=start_date,
            end_date_offset=end_date_offset,
            tee_time_offsets=tee_time_offsets,
            division_round_offsets=division_round_offsets,
            division_names=division_names,
            registration_open_offset=reg_offset("regStartDate"),
            registration_close_offset=reg_offset("regEndDate"),
            withdrawal_deadline_offset=reg_offset("withdrawalDeadline", "maxAllowedWithdraDate"),
        )

    def divisions_payload(self, divisions: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Stamp each division round with its absolute ``date`` and ``dayOffset``"""
        converted = []
        for division in divisions or []:
            offsets = self.division_round_offsets.get(division_key(division), {})
            rounds = []
            for index, round_data in enumerate(division.get("rounds") or []):
                day_offset = offsets.get(index, index)
                fresh = {k: v for k, v in round_data.items() if k not in ("_id", "date")}
                fresh["date"] = self.date_for_offset(day_offset)
                fresh["dayOffset"] = day_offset
                rounds.append(fresh)
            converted.append({**division, "rounds": rounds})
        return converted

    def to_payload(self, divisions: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
        """
        Convert the schedule back to the absolute dates the backend stores.

        Returns:
            Dict with ``basicInfo`` (start, end, tee times), ``regPaymentInfo``
            registration dates and, when given, ``divisions`` with dated rounds
        """
        payload = {
            "basicInfo": {
                "startDate": self.start_date,
                "endDate": self.end_date,
                "teeTimes": [
                    {"date": self.date_for_offset(t["dayOffset"]), "startTime": t["startTime"]}
                    for t in self.tee_time_offsets
                ]
            },
            "regPaymentInfo": self.registration_dates()
        }
        if divisions is not None:
            payload["divisions"] = self.divisions_payload(divisions)
        return payload

    def to_dict(self) -> Dict:
        return {
            "startDate": self.start_date,
            "endDateOffset": self.end_date_offset,
            "teeTimeOffsets": copy.deepcopy(self.tee_time_offsets),
            "divisionRoundOffsets": copy.deepcopy(self.division_round_offsets),
            "registrationOpenOffset": self.registration_open_offset,
            "registrationCloseOffset": self.registration_close_offset,
            "withdrawalDeadlineOffset": self.withdrawal_deadline_offset
        }

    def __repr__(self) -> str:
        return f"TournamentSchedule(start={self.start_date}, end={self.end_date}, divisions={len(self.division_round_offsets)})"
