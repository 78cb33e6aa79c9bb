"""Exception types raised by the SpeedScore client."""

from typing import List, Optional


class SpeedScoreError(Exception):
    """Base class for all client errors"""


class ApiError(SpeedScoreError):
    """
    A request to the SpeedScore backend failed.

    ``status`` is the HTTP status code, or None when the backend could not be
    reached at all.
    """

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status

    def __str__(self) -> str:
        return self.message


class AuthenticationError(ApiError):
    """The session is no longer valid and the user must log in again"""

    def __init__(self, message: str = "", status: Optional[int] = 401):
        super().__init__(f"Please Login Again! \n {message}".rstrip(), status)


class EmailNotVerifiedError(ApiError):
    """Login succeeded but the account's email address is not verified yet"""

    def __init__(self, message: str = "Please verify your email address before logging in.", status: Optional[int] = 202):
        super().__init__(message, status)


class ValidationError(SpeedScoreError):
    """Tournament data is incomplete or inconsistent and cannot be saved"""

    def __init__(self, problems: List[str]):
        super().__init__("; ".join(problems))
        self.problems = list(problems)


class ScheduleError(SpeedScoreError):
    """A tournament schedule edit is not allowed"""


class DateConflictError(ScheduleError):
    """A start or end date edit would leave division rounds outside the tournament"""

    def __init__(self, message: str, conflicts: Optional[List] = None):
        super().__init__(message)
        self.message = message
        self.conflicts = list(conflicts or [])

    def __str__(self) -> str:
        return self.message
