"""Per-feature service objects over the API client."""

from .buddies import BuddyService
from .competitions import CompetitionService
from .courses import CourseService, rank_courses
from .feed import FeedService
from .rounds import RoundService
from .support import SupportService
from .users import UserService

__all__ = [
    "BuddyService",
    "CompetitionService",
    "CourseService",
    "FeedService",
    "RoundService",
    "SupportService",
    "UserService",
    "rank_courses",
]
