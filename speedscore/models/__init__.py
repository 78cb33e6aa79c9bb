from .models import (
    AuthTokens,
    Course,
    Division,
    Gender,
    Round,
    RoundType,
    Tee,
    Tournament,
    User,
    entity_id,
)

__all__ = [
    "AuthTokens",
    "Course",
    "Division",
    "Gender",
    "Round",
    "RoundType",
    "Tee",
    "Tournament",
    "User",
    "entity_id",
]
