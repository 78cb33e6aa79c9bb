from enum import Enum
from typing import Dict, List, Optional, Any
from datetime import datetime, timedelta, timezone


def _parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp or epoch milliseconds into an aware datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def entity_id(data: Optional[Dict[str, Any]]) -> Optional[str]:
    """Backend documents carry ``_id``; some payloads use ``id``."""
    if not data:
        return None
    return data.get("_id") or data.get("id")


class Gender(str, Enum):
    MENS = "mens"
    WOMENS = "womens"


class RoundType(str, Enum):
    PRACTICE = "PRACTICE"
    LEAGUE = "LEAGUE"
    TOURNAMENT = "TOURNAMENT"


class AuthTokens:
    def __init__(
        self,
        jwt_token: Optional[str] = None,
        jwt_token_expiry: Optional[str] = None,
        refresh_token: Optional[str] = None,
        refresh_token_expiry: Optional[str] = None
    ):
        self.jwt_token = jwt_token
        self.jwt_token_expiry = jwt_token_expiry
        self.refresh_token = refresh_token
        self.refresh_token_expiry = refresh_token_expiry

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "AuthTokens":
        """
        Build tokens from a login/refresh response or a cached session.

        The login response nests the refresh token as
        ``{"token": ..., "expiresAt": ...}``; refresh responses and the
        session cache carry it flat.
        """
        data = data or {}
        refresh = data.get("refreshToken")
        refresh_expiry = data.get("refreshTokenExpiry")
        if isinstance(refresh, dict):
            refresh_expiry = refresh.get("expiresAt", refresh_expiry)
            refresh = refresh.get("token")
        return cls(
            jwt_token=data.get("jwtToken"),
            jwt_token_expiry=data.get("jwtTokenExpiry"),
            refresh_token=refresh,
            refresh_token_expiry=refresh_expiry,
        )

    def is_expired(self, buffer_minutes: int = 5, now: Optional[datetime] = None) -> bool:
        """True if the access token is missing or expires within ``buffer_minutes``."""
        if not self.jwt_token:
            return True
        expiry = _parse_timestamp(self.jwt_token_expiry)
        if expiry is None:
            return False
        now = now or datetime.now(timezone.utc)
        return expiry - now <= timedelta(minutes=buffer_minutes)

    def to_dict(self) -> Dict:
        return {
            "jwtToken": self.jwt_token,
            "jwtTokenExpiry": self.jwt_token_expiry,
            "refreshToken": self.refresh_token,
            "refreshTokenExpiry": self.refresh_token_expiry
        }


class User:
    def __init__(
        self,
        id: Optional[str],
        account_info: Optional[Dict] = None,
        personal_info: Optional[Dict] = None,
        speedgolf_info: Optional[Dict] = None,
        preferences: Optional[Dict] = None,
        buddies: Optional[List] = None,
        incoming_buddy_requests: Optional[List] = None,
        outgoing_buddy_requests: Optional[List] = None
    ):
        self.id = id
        self.account_info = account_info or {}
        self.personal_info = personal_info or {}
        self.speedgolf_info = speedgolf_info or {}
        self.preferences = preferences or {}
        self.buddies = buddies or []
        self.incoming_buddy_requests = incoming_buddy_requests or []
        self.outgoing_buddy_requests = outgoing_buddy_requests or []

    @property
    def email(self) -> Optional[str]:
        return self.account_info.get("email")

    @property
    def display_name(self) -> str:
        """Preferred display name, falling back to full name and then email"""
        if self.personal_info.get("displayName"):
            return self.personal_info["displayName"]
        full_name = " ".join(
            part for part in (self.personal_info.get("firstName"), self.personal_info.get("lastName")) if part
        )
        return full_name or self.email or ""

    @property
    def par_gender(self) -> str:
        return self.personal_info.get("parGender") or Gender.MENS.value

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        return cls(
            id=entity_id(data),
            account_info=data.get("accountInfo"),
            personal_info=data.get("personalInfo"),
            speedgolf_info=data.get("speedgolfInfo"),
            preferences=data.get("preferences"),
            buddies=data.get("buddies"),
            incoming_buddy_requests=data.get("incomingBuddyRequests"),
            outgoing_buddy_requests=data.get("outgoingBuddyRequests"),
        )

    def to_dict(self) -> Dict:
        return {
            "_id": self.id,
            "accountInfo": self.account_info,
            "personalInfo": self.personal_info,
            "speedgolfInfo": self.speedgolf_info,
            "preferences": self.preferences,
            "buddies": self.buddies,
            "incomingBuddyRequests": self.incoming_buddy_requests,
            "outgoingBuddyRequests": self.outgoing_buddy_requests
        }


class Tee:
    def __init__(self, id: Optional[str], name: str, holes: Optional[List[Dict]] = None, **extra):
        self.id = id
        self.name = name
        # Per-hole dicts with mensStrokePar, womensTimePar, ...
        self.holes = holes or []
        self.extra = extra

    def hole_par(self, hole_number: int, gender: str = Gender.MENS.value) -> int:
        """Stroke par for a 1-based hole number, 0 when unknown"""
        return self._hole_value(hole_number, f"{gender}StrokePar")

    def hole_time_par(self, hole_number: int, gender: str = Gender.MENS.value) -> int:
        """Time par in seconds for a 1-based hole number, 0 when unknown"""
        return self._hole_value(hole_number, f"{gender}TimePar")

    def _hole_value(self, hole_number: int, key: str) -> int:
        if hole_number < 1 or hole_number > len(self.holes):
            return 0
        return int(round(self.holes[hole_number - 1].get(key) or 0))

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Tee":
        extra = {k: v for k, v in data.items() if k not in ("_id", "id", "name", "holes")}
        return cls(id=entity_id(data), name=data.get("name", ""), holes=data.get("holes"), **extra)

    def to_dict(self) -> Dict:
        return {"_id": self.id, "name": self.name, "holes": self.holes, **self.extra}


class Course:
    def __init__(
        self,
        id: Optional[str],
        short_name: str,
        name: Optional[str] = None,
        tees: Optional[Dict[str, Tee]] = None,
        **extra
    ):
        self.id = id
        self.short_name = short_name
        self.name = name or short_name
        self.tees: Dict[str, Tee] = tees or {}
        self.extra = extra

    def find_tee(self, tee_name: Optional[str]) -> Optional[Tee]:
        """Look up a tee by name, case-insensitively"""
        if not tee_name:
            return None
        for tee in self.tees.values():
            if tee.name.lower() == tee_name.lower():
                return tee
        return None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Course":
        raw_tees = data.get("tees") or {}
        # The backend sends tees either keyed by name or as a list
        if isinstance(raw_tees, list):
            raw_tees = {tee.get("name", str(i)): tee for i, tee in enumerate(raw_tees)}
        tees = {key: Tee.from_dict(tee) for key, tee in raw_tees.items()}
        extra = {k: v for k, v in data.items() if k not in ("_id", "id", "shortName", "name", "tees")}
        return cls(
            id=entity_id(data),
            short_name=data.get("shortName") or data.get("name", ""),
            name=data.get("name"),
            tees=tees,
            **extra
        )

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "shortName": self.short_name,
            "name": self.name,
            "tees": {key: tee.to_dict() for key, tee in self.tees.items()},
            **self.extra
        }


class Round:
    def __init__(
        self,
        id: Optional[str],
        date: Optional[str],
        course: Optional[str],
        tee: Optional[Any] = None,
        strokes: int = 0,
        minutes: int = 0,
        seconds: int = 0,
        notes: str = "",
        round_type: str = RoundType.PRACTICE.value,
        hole_by_hole: Optional[List[Dict]] = None
    ):
        self.id = id
        self.date = date
        self.course = course
        self.tee = tee
        self.strokes = int(strokes or 0)
        self.minutes = int(minutes or 0)
        self.seconds = int(seconds or 0)
        self.notes = notes or ""
        self.round_type = round_type
        self.hole_by_hole = hole_by_hole or []

    @property
    def tee_name(self) -> Optional[str]:
        if isinstance(self.tee, dict):
            return self.tee.get("name")
        return self.tee

    @property
    def time_seconds(self) -> int:
        return self.minutes * 60 + self.seconds

    @property
    def sgs(self) -> str:
        """Speedgolf score ``MM:SS``: strokes plus elapsed minutes, seconds carried"""
        total = self.strokes * 60 + self.time_seconds
        return f"{total // 60:02d}:{total % 60:02d}"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Round":
        minutes = data.get("minutes")
        seconds = data.get("seconds")
        # Stored rounds may carry only the total time in seconds
        if minutes is None and seconds is None and data.get("time") is not None:
            minutes, seconds = divmod(int(data["time"]), 60)
        return cls(
            id=entity_id(data),
            date=data.get("date"),
            course=data.get("course"),
            tee=data.get("tee"),
            strokes=data.get("strokes", 0),
            minutes=minutes or 0,
            seconds=seconds or 0,
            notes=data.get("notes", ""),
            round_type=data.get("roundType", RoundType.PRACTICE.value),
            hole_by_hole=data.get("holeByHole"),
        )

    def to_dict(self) -> Dict:
        return {
            "id": self.id,
            "date": self.date,
            "course": self.course,
            "tee": self.tee,
            "strokes": self.strokes,
            "minutes": self.minutes,
            "seconds": self.seconds,
            "notes": self.notes,
            "roundType": self.round_type,
            "holeByHole": self.hole_by_hole
        }


class Division:
    def __init__(self, id: Optional[str], name: str, gender: str = Gender.MENS.value, rounds: Optional[List[Dict]] = None, **extra):
        self.id = id
        self.name = name
        self.gender = gender
        self.rounds = rounds or []
        self.extra = extra

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Division":
        # Unsaved divisions only carry the client-side ``clientId``
        division_id = data.get("clientId") or entity_id(data)
        extra = {k: v for k, v in data.items() if k not in ("clientId", "_id", "id", "name", "gender", "rounds")}
        return cls(
            id=division_id,
            name=data.get("name", ""),
            gender=data.get("gender", Gender.MENS.value),
            rounds=data.get("rounds"),
            **extra
        )

    def to_dict(self) -> Dict:
        return {"_id": self.id, "name": self.name, "gender": self.gender, "rounds": self.rounds, **self.extra}


class Tournament:
    def __init__(
        self,
        id: Optional[str],
        basic_info: Optional[Dict] = None,
        reg_payment_info: Optional[Dict] = None,
        color_theme: Optional[Dict] = None,
        courses: Optional[List] = None,
        divisions: Optional[List[Division]] = None,
        players: Optional[List] = None,
        published: bool = False
    ):
        self.id = id
        self.basic_info = basic_info or {}
        self.reg_payment_info = reg_payment_info or {}
        self.color_theme = color_theme or {}
        self.courses = courses or []
        self.divisions = divisions or []
        self.players = players or []
        self.published = published

    @property
    def name(self) -> str:
        return self.basic_info.get("name", "")

    @property
    def unique_name(self) -> str:
        return self.basic_info.get("uniqueName", "")

    @property
    def start_date(self) -> Optional[str]:
        return self.basic_info.get("startDate")

    @property
    def end_date(self) -> Optional[str]:
        return self.basic_info.get("endDate")

    def find_division(self, division_id: str) -> Optional[Division]:
        for division in self.divisions:
            if division.id == division_id:
                return division
        return None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Tournament":
        return cls(
            id=entity_id(data),
            basic_info=data.get("basicInfo"),
            reg_payment_info=data.get("regPaymentInfo"),
            color_theme=data.get("colorTheme"),
            courses=data.get("courses"),
            divisions=[Division.from_dict(d) for d in data.get("divisions") or []],
            players=data.get("players"),
            published=bool(data.get("published", False)),
        )

    def to_dict(self) -> Dict:
        return {
            "_id": self.id,
            "basicInfo": self.basic_info,
            "regPaymentInfo": self.reg_payment_info,
            "colorTheme": self.color_theme,
            "courses": self.courses,
            "divisions": [d.to_dict() for d in self.divisions],
            "players": self.players,
            "published": self.published
        }
