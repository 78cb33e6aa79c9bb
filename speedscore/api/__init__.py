"""REST client for the SpeedScore backend."""

from .client import ApiClient
from .errors import (
    SpeedScoreError,
    ApiError,
    AuthenticationError,
    EmailNotVerifiedError,
    ValidationError,
    ScheduleError,
    DateConflictError,
)

__all__ = [
    "ApiClient",
    "SpeedScoreError",
    "ApiError",
    "AuthenticationError",
    "EmailNotVerifiedError",
    "ValidationError",
    "ScheduleError",
    "DateConflictError",
]
