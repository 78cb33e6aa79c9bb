"""Tournament scheduling, naming, wizard state and score arithmetic."""

from .naming import generate_unique_tournament_name, get_tournament_name_abbr
from .schedule import RoundConflict, TournamentSchedule, division_key
from .wizard import STEPS, TournamentWizard

__all__ = [
    "RoundConflict",
    "STEPS",
    "TournamentSchedule",
    "TournamentWizard",
    "division_key",
    "generate_unique_tournament_name",
    "get_tournament_name_abbr",
]
