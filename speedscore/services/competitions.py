"""Tournament management and public tournament views."""

from typing import Any, Dict, List, Optional

from speedscore.models.models import Tournament
from speedscore.services.base import BaseService
from speedscore.utils.config_manager import get_config
from speedscore.utils.logger_config import get_logger

logger = get_logger("competition_service")

# Wizard tab name -> tab endpoint
TAB_ENDPOINTS = {
    "basicInfo": "basic-info",
    "regPaymentInfo": "reg-payment-info",
    "colorTheme": "color-theme",
    "courses": "courses",
    "divisions": "divisions",
}


class CompetitionService(BaseService):
    """
    Tournament endpoints live under a configurable prefix
    (``api.competition_endpoint``); public views need no login.
    """

    def __init__(self, client, endpoint: Optional[str] = None):
        super().__init__(client)
        self.endpoint = (endpoint or get_config().get("api.competition_endpoint", "competition")).strip("/")

    def _path(self, suffix: str = "") -> str:
        return f"{self.endpoint}/{suffix}" if suffix else self.endpoint

    # ------------------------------------------------------------------
    # Director operations
    # ------------------------------------------------------------------

    def list_tournaments(self) -> List[Tournament]:
        data = self.client.get(self._path(), context="Failed to fetch tournaments") or []
        return [Tournament.from_dict(t) for t in data]

    def list_raw(self) -> List[Dict[str, Any]]:
        return self.client.get(self._path(), context="Failed to fetch tournaments") or []

    def get(self, tournament_id: str) -> Dict[str, Any]:
        return self.client.get(self._path(tournament_id), context="Failed to fetch tournament")

    def create(self, basic_info: Dict[str, Any]) -> str:
        """Create a tournament from its basic info and return the new id"""
        data = self.client.post(self._path("newCompetition"), json=basic_info, context="Failed to save info")
        tournament_id = (data or {}).get("competitionId")
        logger.info(f"Created tournament {basic_info.get('name')!r} with id {tournament_id}")
        return tournament_id

    def save_tab(self, tournament_id: str, tab: str, data: Any) -> Any:
        """Save one wizard tab to its endpoint"""
        if tab not in TAB_ENDPOINTS:
            raise ValueError(f"Unknown tournament tab: {tab}")
        return self.client.post(self._path(f"{tournament_id}/{TAB_ENDPOINTS[tab]}"), json=data,
                                context=f"Failed to save {tab}")

    def save_basic_info(self, tournament_id: str, data: Dict[str, Any]) -> Any:
        return self.save_tab(tournament_id, "basicInfo", data)

    def save_reg_payment_info(self, tournament_id: str, data: Dict[str, Any]) -> Any:
        return self.save_tab(tournament_id, "regPaymentInfo", data)

    def save_color_theme(self, tournament_id: str, data: Dict[str, Any]) -> Any:
        return self.save_tab(tournament_id, "colorTheme", data)

    def save_courses(self, tournament_id: str, courses: List[Dict[str, Any]]) -> Any:
        return self.save_tab(tournament_id, "courses", courses)

    def save_divisions(self, tournament_id: str, divisions: List[Dict[str, Any]]) -> Any:
        return self.save_tab(tournament_id, "divisions", divisions)

    def publish(self, tournament_id: str, published: bool = True, stripe_account_id: Optional[str] = None) -> Any:
        payload = {"published": published, "directorStripeAccountId": stripe_account_id}
        return self.client.post(self._path(f"{tournament_id}/publish"), json=payload,
                                context="Failed to update publish status")

    def register_player(self, tournament_id: str, player: Dict[str, Any]) -> Any:
        return self.client.post(self._path(f"{tournament_id}/player"), json=[player],
                                context="Failed to register player")

    def get_tee_sheet(self, tournament_id: str) -> Any:
        return self.client.get(self._path(f"{tournament_id}/teesheet"), context="Failed to fetch tee sheet")

    def save_tee_sheet(self, tournament_id: str, tee_sheet: Dict[str, Any]) -> Any:
        return self.client.post(self._path(f"{tournament_id}/teesheet"), json=tee_sheet,
                                context="Failed to save tee sheet")

    def save_scores(self, tournament_id: str, score_data: Dict[str, Any]) -> Any:
        return self.client.post(self._path(f"{tournament_id}/scores"),
                                json={**score_data, "competitionId": tournament_id},
                                context="Failed to save scores")

    def all_user_names(self) -> Any:
        endpoint = get_config().get("api.usernames_endpoint", "users/usernames")
        return self.client.get(endpoint, context="Failed to fetch user names")

    def teesets(self) -> Any:
        return self.client.get("teesets", context="Failed to fetch tee sets")

    # ------------------------------------------------------------------
    # Public views
    # ------------------------------------------------------------------

    def public_tournaments(self) -> Any:
        return self.client.get(self._path("public"), auth=False, context="Failed to fetch public tournaments")

    def public_tournament(self, unique_name: str) -> Any:
        return self.client.get(self._path(f"u/{unique_name}"), auth=False, context="Failed to fetch tournament")

    def public_leaderboard(self, unique_name: str) -> Any:
        return self.client.get(self._path(f"u/{unique_name}/leaderboard"), auth=False,
                               context="Failed to fetch leaderboard")

    def public_tee_sheet(self, unique_name: str) -> Any:
        return self.client.get(self._path(f"u/{unique_name}/teesheet"), auth=False,
                               context="Failed to fetch tee sheet")
