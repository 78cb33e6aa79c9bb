"""Buddy lists and buddy requests."""

from typing import Any, List, Optional

from speedscore.services.base import BaseService
from speedscore.utils.logger_config import get_logger

logger = get_logger("buddy_service")


class BuddyService(BaseService):
    """All operations act on the logged-in user unless a ``user_id`` is given"""

    def _buddies(self, user_id: Optional[str], suffix: str = "") -> str:
        path = f"users/{self.require_user_id(user_id)}/buddies"
        return f"{path}/{suffix}" if suffix else path

    def current(self, user_id: Optional[str] = None) -> Any:
        return self.client.get(self._buddies(user_id), context="Failed to fetch buddies")

    def incoming(self, user_id: Optional[str] = None) -> Any:
        return self.client.get(self._buddies(user_id, "requests/incoming"),
                               context="Failed to fetch incoming buddy requests")

    def outgoing(self, user_id: Optional[str] = None) -> Any:
        return self.client.get(self._buddies(user_id, "requests/outgoing"),
                               context="Failed to fetch outgoing buddy requests")

    def send(self, buddy_id: str, user_id: Optional[str] = None) -> Any:
        data = self.client.post(self._buddies(user_id, f"{buddy_id}/send"), json={},
                                context="Failed to send buddy request")
        logger.info(f"Sent buddy request to {buddy_id}")
        return data

    def accept(self, buddy_id: str, user_id: Optional[str] = None) -> Any:
        # The backend expects an empty body on accept
        return self.client.put(self._buddies(user_id, f"{buddy_id}/accept"), json={},
                               context="Failed to accept buddy request")

    def reject(self, buddy_id: str, user_id: Optional[str] = None) -> Any:
        return self.client.delete(self._buddies(user_id, f"{buddy_id}/cancel/incoming"),
                                  context="Failed to reject buddy request")

    def cancel(self, buddy_id: str, user_id: Optional[str] = None) -> Any:
        return self.client.delete(self._buddies(user_id, f"{buddy_id}/cancel/outgoing"),
                                  context="Failed to cancel buddy request")

    def remove(self, buddy_id: str, user_id: Optional[str] = None) -> Any:
        return self.client.delete(self._buddies(user_id, f"{buddy_id}/remove/existing"),
                                  context="Failed to remove buddy")

    def search_users(self, search_term: str) -> Any:
        return self.client.get("users", params={"search": search_term}, context="Failed to search users")

    def details(self, user_id: Optional[str] = None) -> Any:
        """Personal info of all buddies and requesters of a user"""
        return self.client.get(f"users/{self.require_user_id(user_id)}/allBuddiesInfo",
                               context="Failed to fetch buddy details")

    def personal_info(self, buddy_ids: List[str]) -> Any:
        return self.client.post("users/buddies/personalInfo", json={"buddyIds": buddy_ids},
                                context="Failed to fetch buddy details")
