"""
Multi-step tournament editor.

``TournamentWizard`` holds the tab data of one tournament being created or
edited, tracks which tabs changed, and saves only those tabs. Dates are kept
in a ``TournamentSchedule`` as day offsets while editing and converted back to
absolute dates when the payload is built.
"""

import copy
from typing import Any, Dict, Iterable, List, Optional

from speedscore.api.errors import ScheduleError, ValidationError
from speedscore.engine.naming import generate_unique_tournament_name
from speedscore.engine.schedule import MAX_DIVISION_ROUNDS, TournamentSchedule, division_key
from speedscore.utils.config_manager import get_config
from speedscore.utils.currency import validate_entry_fee
from speedscore.utils.logger_config import get_logger

logger = get_logger("wizard")

STEPS = ["basicInfo", "regPaymentInfo", "colorTheme", "courses", "divisions"]

STEP_TITLES = {
    "basicInfo": "Basic Info",
    "regPaymentInfo": "Registration & Payment",
    "colorTheme": "Color Theme",
    "courses": "Courses",
    "divisions": "Divisions",
}

DEFAULT_COLOR_THEME = {
    "titleText": "#000000",
    "headerRowBg": "#CC2127",
    "headerRowTxt": "#ffffff",
    "updateBtnBg": "#13294E",
    "updateBtnTxt": "#FFFFFF",
    "tournNameBannerBg": "#13294E",
    "tournNameBannerTxt": "#FFFFFF",
    "strParColBg": "#13294E",
    "strParColTxt": "#FFFFFF",
    "timeParColBg": "#13294E",
    "timeParColTxt": "#FFFFFF",
    "SGParColBg": "#000000",
    "SGParColTxt": "#FFFFFF",
}

DEFAULT_REG_PAYMENT_INFO = {
    "currencyType": "USD",
    "entryFee": None,
    "acceptsCash": False,
    "acceptsCheck": False,
    "acceptsPayPal": False,
    "payPalAccount": None,
    "acceptsVenmo": False,
    "venmoAccount": None,
    "acceptsZelle": False,
    "zelleAccount": None,
    "acceptsCashApp": False,
    "cashAppAccount": None,
    "refundPolicy": None,
    "swagSizes": [],
}

# Registration dates are derived from the schedule offsets on save
_REG_DATE_KEYS = ("regStartDate", "regEndDate", "withdrawalDeadline", "maxAllowedWithdraDate")
_BASIC_DATE_KEYS = ("startDate", "endDate", "teeTimes")


class TournamentWizard:
    def __init__(self, tournament: Optional[Dict[str, Any]] = None,
                 existing_names: Optional[Iterable[Any]] = None):
        self.existing_names = list(existing_names or [])
        self.default_tee_time = get_config().get("tournament.default_tee_time", "07:00")
        self.tournament_id: Optional[str] = None
        self.tabs: Dict[str, Any] = {}
        self.schedule: Optional[TournamentSchedule] = None
        self.step_index = 0
        self._dirty: List[str] = []
        self._snapshot: Optional[Dict[str, Any]] = None
        self.load(tournament)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self, tournament: Optional[Dict[str, Any]] = None) -> None:
        """
        Start editing ``tournament``, or a blank new tournament when None.

        The document is copied, so later edits never touch the caller's dict.
        """
        self._snapshot = copy.deepcopy(tournament) if tournament else None
        self.step_index = 0
        self._dirty = []

        if not tournament:
            self._load_new()
            return

        data = copy.deepcopy(tournament)
        self.tournament_id = data.get("_id") or data.get("id") or data.get("tournamentId")
        basic_info = data.get("basicInfo") or {}
        self.tabs = {
            "basicInfo": {k: v for k, v in basic_info.items() if k not in _BASIC_DATE_KEYS},
            "regPaymentInfo": {k: v for k, v in (data.get("regPaymentInfo") or {}).items()
                               if k not in _REG_DATE_KEYS},
            "colorTheme": data.get("colorTheme") or dict(DEFAULT_COLOR_THEME),
            "courses": data.get("courses") or data.get("coursesInfo") or [],
            "divisions": data.get("divisions") or [],
        }
        self.schedule = TournamentSchedule.from_tournament(data) if basic_info.get("startDate") else None
        logger.info(f"Loaded tournament {self.tournament_id} into wizard")

    def _load_new(self) -> None:
        self.tournament_id = None
        self.schedule = None
        self.tabs = {
            "basicInfo": {"name": "", "uniqueName": "", "admins": []},
            "regPaymentInfo": dict(DEFAULT_REG_PAYMENT_INFO, swagSizes=[]),
            "colorTheme": dict(DEFAULT_COLOR_THEME),
            "courses": [],
            "divisions": [],
        }

    @property
    def is_new(self) -> bool:
        return self.tournament_id is None

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    @property
    def current_step(self) -> str:
        return STEPS[self.step_index]

    def next_step(self) -> str:
        if self.step_index < len(STEPS) - 1:
            self.step_index += 1
        return self.current_step

    def prev_step(self) -> str:
        if self.step_index > 0:
            self.step_index -= 1
        return self.current_step

    def go_to(self, step: str) -> str:
        if step not in STEPS:
            raise ValueError(f"Unknown tournament tab: {step}")
        self.step_index = STEPS.index(step)
        return self.current_step

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def _mark_dirty(self, tab: str) -> None:
        if tab not in self._dirty:
            self._dirty.append(tab)

    def update_tab(self, tab: str, data: Any) -> None:
        """
        Replace or merge the data of one tab and mark it dirty.

        Dict tabs are merged into the existing data, list tabs (courses,
        divisions) are replaced.
        """
        if tab not in STEPS:
            raise ValueError(f"Unknown tournament tab: {tab}")
        if tab == "divisions":
            for division in data or []:
                if len(division.get("rounds") or []) > MAX_DIVISION_ROUNDS:
                    raise ScheduleError(
                        f"Division {division.get('name') or division_key(division)} "
                        f"cannot have more than {MAX_DIVISION_ROUNDS} rounds")

        if isinstance(data, dict) and isinstance(self.tabs.get(tab), dict):
            self.tabs[tab] = {**self.tabs[tab], **copy.deepcopy(data)}
        else:
            self.tabs[tab] = copy.deepcopy(data)

        if tab == "basicInfo":
            self._ensure_unique_name()
        elif tab == "divisions":
            self._sync_divisions()
        self._mark_dirty(tab)

    def _ensure_unique_name(self) -> None:
        basic_info = self.tabs["basicInfo"]
        if basic_info.get("name") and not basic_info.get("uniqueName"):
            start_date = self.schedule.start_date if self.schedule else None
            basic_info["uniqueName"] = generate_unique_tournament_name(
                basic_info["name"], self.existing_names, start_date)
            logger.debug(f"Generated unique name {basic_info['uniqueName']}")

    def _sync_divisions(self) -> None:
        if self.schedule is None:
            return
        keys = set()
        for division in self.tabs["divisions"]:
            key = division_key(division)
            if key is None:
                continue
            keys.add(key)
            self.schedule.set_division(key, division.get("name"), len(division.get("rounds") or []))
        for key in list(self.schedule.division_round_offsets):
            if key not in keys:
                self.schedule.remove_division(key)

    def set_start_date(self, start_date: Any, keep_end_date: bool = True) -> None:
        """
        Set the tournament start date.

        The first call creates the schedule. Afterwards the end date stays
        fixed unless ``keep_end_date`` is False, in which case the whole
        schedule moves.

        Raises:
            DateConflictError: If division rounds would fall outside the range
        """
        if self.schedule is None:
            self.schedule = TournamentSchedule(
                start_date, default_tee_time=self.default_tee_time)
            self._sync_divisions()
        elif keep_end_date:
            self.schedule.change_start_date(start_date)
        else:
            self.schedule.shift_start_date(start_date)
        self._mark_dirty("basicInfo")
        self._mark_dirty("regPaymentInfo")

    def _require_schedule(self) -> TournamentSchedule:
        if self.schedule is None:
            raise ScheduleError("Set the tournament start date first")
        return self.schedule

    def set_end_date(self, end_date: Any) -> None:
        self._require_schedule().change_end_date(end_date)
        self._mark_dirty("basicInfo")

    def set_end_date_offset(self, end_date_offset: int) -> None:
        self._require_schedule().set_end_date_offset(end_date_offset)
        self._mark_dirty("basicInfo")

    def set_tee_time(self, day_offset: int, start_time: str) -> None:
        self._require_schedule().set_tee_time(day_offset, start_time)
        self._mark_dirty("basicInfo")

    def set_round_offset(self, division_id: str, round_index: int, day_offset: int, cascade: bool = True) -> None:
        self._require_schedule().set_round_offset(division_id, round_index, day_offset, cascade=cascade)
        self._mark_dirty("divisions")

    def set_registration_offsets(self, open_offset: Optional[int] = None, close_offset: Optional[int] = None,
                                 withdrawal_offset: Optional[int] = None) -> None:
        schedule = self._require_schedule()
        if open_offset is not None:
            schedule.registration_open_offset = int(open_offset)
        if close_offset is not None:
            schedule.registration_close_offset = int(close_offset)
        if withdrawal_offset is not None:
            schedule.withdrawal_deadline_offset = int(withdrawal_offset)
        self._mark_dirty("regPaymentInfo")

    # ------------------------------------------------------------------
    # Dirty tracking
    # ------------------------------------------------------------------

    @property
    def dirty_tabs(self) -> List[str]:
        return [tab for tab in STEPS if tab in self._dirty]

    def is_dirty(self, tab: Optional[str] = None) -> bool:
        return bool(self._dirty) if tab is None else tab in self._dirty

    def clear_dirty(self) -> None:
        self._dirty = []

    def cancel(self) -> None:
        """Discard all edits since the last load or save"""
        logger.info("Discarding wizard edits")
        snapshot = self._snapshot
        self.load(snapshot)

    # ------------------------------------------------------------------
    # Validation and payloads
    # ------------------------------------------------------------------

    def validate(self) -> List[str]:
        """Return the problems that prevent saving; empty when the tournament can be saved"""
        problems = []
        basic_info = self.tabs["basicInfo"]
        if not (basic_info.get("name") or "").strip():
            problems.append("Tournament name is required")
        if self.schedule is None:
            problems.append("Tournament start date is required")
            return problems

        for conflict in self.schedule.find_conflicts(self.schedule.end_date_offset):
            problems.append(f"{conflict.describe()} is outside the tournament dates")

        schedule = self.schedule
        if schedule.registration_open_offset > schedule.registration_close_offset:
            problems.append("Registration must open before it closes")
        if schedule.registration_close_offset > schedule.end_date_offset:
            problems.append("Registration must close before the tournament ends")

        currency = self.tabs["regPaymentInfo"].get("currencyType") or "USD"
        fees = [("Entry fee", self.tabs["regPaymentInfo"].get("entryFee"))]
        fees += [(f"Entry fee for {d.get('name') or division_key(d)}", d.get("entryFee"))
                 for d in self.tabs["divisions"]]
        for label, fee in fees:
            if fee in (None, "", 0):
                continue
            try:
                amount = float(fee)
            except (TypeError, ValueError):
                problems.append(f"{label}: must be a number")
                continue
            result = validate_entry_fee(amount, currency)
            if not result["valid"]:
                problems.append(f"{label}: {result['message']}")
        return problems

    def build_payload(self) -> Dict[str, Any]:
        """Tab data with every offset converted back to an absolute date"""
        payload = {
            "basicInfo": copy.deepcopy(self.tabs["basicInfo"]),
            "regPaymentInfo": copy.deepcopy(self.tabs["regPaymentInfo"]),
            "colorTheme": copy.deepcopy(self.tabs["colorTheme"]),
            "courses": copy.deepcopy(self.tabs["courses"]),
            "divisions": copy.deepcopy(self.tabs["divisions"]),
        }
        if self.schedule is not None:
            dates = self.schedule.to_payload(payload["divisions"])
            payload["basicInfo"].update(dates["basicInfo"])
            payload["regPaymentInfo"].update(dates["regPaymentInfo"])
            payload["divisions"] = dates["divisions"]
        return payload

    def save(self, competitions) -> Optional[str]:
        """
        Save the tournament through a ``CompetitionService``.

        A new tournament is created first. Each dirty tab is then posted in
        wizard order and marked clean once accepted; a failing request stops
        the save and leaves the remaining tabs dirty.

        Returns:
            The tournament id

        Raises:
            ValidationError: If ``validate()`` reports problems
            ApiError: If a request fails
        """
        problems = self.validate()
        if problems:
            raise ValidationError(problems)

        payload = self.build_payload()
        if self.tournament_id is None:
            self.tournament_id = competitions.create(payload["basicInfo"])
            self._dirty = [tab for tab in self._dirty if tab != "basicInfo"]

        for tab in self.dirty_tabs:
            competitions.save_tab(self.tournament_id, tab, payload[tab])
            self._dirty.remove(tab)
            logger.info(f"Saved {STEP_TITLES[tab]} for tournament {self.tournament_id}")

        self._snapshot = self.to_tournament()
        return self.tournament_id

    def to_tournament(self) -> Dict[str, Any]:
        """The edited tournament as a backend document"""
        document = self.build_payload()
        if self.tournament_id is not None:
            document["_id"] = self.tournament_id
        return document
