"""
Local session cache.

The session file keeps the last-known user, auth tokens and cached rounds and
courses between CLI invocations. It is never authoritative: the backend owns
all of this data and the cache only pre-populates state and enables
auto-login.
"""

import json
import os
import tempfile
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

import json_repair

from speedscore.models.models import AuthTokens, User
from speedscore.utils.config_manager import get_config
from speedscore.utils.logger_config import get_logger

logger = get_logger("session_store")

EVENT_LOGIN = "login"
EVENT_LOGOUT = "logout"

SessionListener = Callable[[str], None]


class SessionStore:
    """JSON-file session cache with atomic writes and cross-process change detection"""

    def __init__(self, path: Optional[str] = None, autoload: bool = True):
        self.path = os.path.expanduser(path or get_config().get("session.path"))
        self.user_data: Optional[Dict[str, Any]] = None
        self.tokens = AuthTokens()
        self.rounds: List[Dict[str, Any]] = []
        self.courses: List[Dict[str, Any]] = []
        self._listeners: List[SessionListener] = []
        self._mtime: Optional[int] = None

        if autoload:
            self.load()

    # ------------------------------------------------------------------
    # State accessors
    # ------------------------------------------------------------------

    @property
    def user(self) -> Optional[User]:
        return User.from_dict(self.user_data) if self.user_data else None

    @property
    def user_id(self) -> Optional[str]:
        user = self.user
        return user.id if user else None

    @property
    def jwt_token(self) -> Optional[str]:
        return self.tokens.jwt_token

    @property
    def refresh_token(self) -> Optional[str]:
        return self.tokens.refresh_token

    @property
    def is_authenticated(self) -> bool:
        return bool(self.tokens.jwt_token and self.user_data)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _read_file(self) -> Optional[Dict[str, Any]]:
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                content = f.read()
        except FileNotFoundError:
            return None
        except UnicodeDecodeError as e:
            logger.warning(f"Discarding session file {self.path}: not valid UTF-8 ({e})")
            return None

        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            logger.warning(f"Session file {self.path} is corrupt ({e}), attempting repair")
            data = json_repair.loads(content)

        if not isinstance(data, dict):
            logger.warning(f"Discarding unreadable session file {self.path}")
            return None
        return data

    def _section(self, data: Dict[str, Any], key: str, expected: type) -> Any:
        value = data.get(key)
        if value is None or isinstance(value, expected):
            return value
        logger.warning(f"Dropping '{key}' from session file {self.path}: expected {expected.__name__}, "
                       f"got {type(value).__name__}")
        return None

    def load(self) -> None:
        """Load the cached session, starting empty if there is none"""
        data = self._read_file() or {}
        self.user_data = self._section(data, "user", dict) or None
        self.tokens = AuthTokens.from_dict(self._section(data, "tokens", dict))
        self.rounds = list(self._section(data, "rounds", list) or [])
        self.courses = list(self._section(data, "courses", list) or [])
        self._mtime = self._current_mtime()
        logger.debug(f"Session loaded from {self.path} (authenticated={self.is_authenticated})")

    def save(self) -> None:
        """Write the session atomically: a temp file in the same directory replaces the old file"""
        directory = os.path.dirname(self.path) or "."
        os.makedirs(directory, exist_ok=True)

        data = {
            "user": self.user_data,
            "tokens": self.tokens.to_dict(),
            "rounds": self.rounds,
            "courses": self.courses,
            "savedAt": datetime.now().isoformat()
        }

        fd, tmp_path = tempfile.mkstemp(prefix=".session-", suffix=".json", dir=directory)
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

        self._mtime = self._current_mtime()
        logger.debug(f"Session saved to {self.path}")

    def _current_mtime(self) -> Optional[int]:
        try:
            return os.stat(self.path).st_mtime_ns
        except FileNotFoundError:
            return None

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def login(self, user_data: Dict[str, Any], tokens: AuthTokens) -> None:
        self.user_data = user_data
        self.tokens = tokens
        self.save()
        logger.info(f"Logged in as {self.user.email if self.user else 'unknown user'}")
        self._notify(EVENT_LOGIN)

    def update_tokens(self, tokens: AuthTokens) -> None:
        """Replace the tokens after a refresh, keeping the old refresh token if none was issued"""
        if not tokens.refresh_token:
            tokens.refresh_token = self.tokens.refresh_token
            tokens.refresh_token_expiry = self.tokens.refresh_token_expiry
        self.tokens = tokens
        self.save()

    def update_user(self, user_data: Dict[str, Any]) -> None:
        self.user_data = user_data
        self.save()

    def logout(self) -> None:
        """Forget the user, tokens and cached data"""
        was_authenticated = self.is_authenticated
        self.user_data = None
        self.tokens = AuthTokens()
        self.rounds = []
        self.courses = []
        self.save()
        logger.info("Logged out, session cleared")
        if was_authenticated:
            self._notify(EVENT_LOGOUT)

    def cache_rounds(self, rounds: List[Dict[str, Any]]) -> None:
        self.rounds = list(rounds)
        self.save()

    def cache_courses(self, courses: List[Dict[str, Any]]) -> None:
        self.courses = list(courses)
        self.save()

    # ------------------------------------------------------------------
    # Cross-process synchronization
    # ------------------------------------------------------------------

    def add_listener(self, listener: SessionListener) -> None:
        """Register a callback receiving ``"login"`` or ``"logout"``"""
        self._listeners.append(listener)

    def remove_listener(self, listener: SessionListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, event: str) -> None:
        for listener in list(self._listeners):
            listener(event)

    def reload_if_changed(self) -> bool:
        """
        Re-read the session file if another process changed it.

        Listeners are told about a login or logout that happened elsewhere.

        Returns:
            True if the file had changed and was reloaded
        """
        if self._current_mtime() == self._mtime:
            return False

        was_authenticated = self.is_authenticated
        previous_user = self.user_id
        self.load()

        if self.is_authenticated and (not was_authenticated or self.user_id != previous_user):
            logger.info("Login detected from another process")
            self._notify(EVENT_LOGIN)
        elif was_authenticated and not self.is_authenticated:
            logger.info("Logout detected from another process")
            self._notify(EVENT_LOGOUT)
        return True
