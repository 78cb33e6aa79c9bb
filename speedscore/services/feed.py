"""Social feed: posts, reactions and comments."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from speedscore.services.base import BaseService
from speedscore.utils.logger_config import get_logger

logger = get_logger("feed_service")

DEFAULT_PAGE_SIZE = 10


class FeedService(BaseService):

    def feed(self, page: int = 1, limit: int = DEFAULT_PAGE_SIZE) -> Any:
        return self.client.get("feeds", params={"page": page, "limit": limit}, context="Failed to fetch feed")

    def user_feed(self, user_id: Optional[str] = None, page: int = 1, limit: int = DEFAULT_PAGE_SIZE) -> Any:
        user_id = self.require_user_id(user_id)
        return self.client.get(f"users/{user_id}/feeds", params={"page": page, "limit": limit},
                               context="Failed to fetch user feed")

    def add_post(self, text: str, tags: Optional[List[str]] = None, is_round: bool = False) -> Any:
        """Post a text update as the logged-in user"""
        user = self.session.user
        user_id = self.require_user_id()
        payload = {
            "textContent": text,
            "isRound": is_round,
            "userFirstName": user.personal_info.get("firstName") if user else None,
            "userLastName": user.personal_info.get("lastName") if user else None,
            "userProfilePic": user.personal_info.get("profilePic") if user else None,
            "tags": tags or [],
            "date": datetime.now().isoformat(),
        }
        data = self.client.post("feeds/addPost", json=payload, params={"userId": user_id},
                                context="Failed to add post")
        logger.info("Feed post added")
        return data

    def react(self, feed_id: str, reaction: Dict[str, Any]) -> Any:
        return self.client.post(f"feeds/{feed_id}/reaction", json=reaction, context="Failed to add reaction")

    def comment(self, feed_id: str, comment: Dict[str, Any]) -> Any:
        return self.client.post(f"feeds/{feed_id}/comment", json=comment, context="Failed to add comment")

    def delete_comment(self, feed_id: str, comment_id: str, user_id: Optional[str] = None) -> Any:
        return self.client.delete(f"feeds/{feed_id}/comment/{comment_id}",
                                  params={"userId": self.require_user_id(user_id)},
                                  context="Failed to delete comment")
