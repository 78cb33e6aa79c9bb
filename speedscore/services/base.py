from typing import Optional

from speedscore.api.client import ApiClient
from speedscore.api.errors import AuthenticationError
from speedscore.session.store import SessionStore


class BaseService:
    """Shared plumbing for the per-feature services"""

    def __init__(self, client: ApiClient):
        self.client = client

    @property
    def session(self) -> SessionStore:
        return self.client.session_store

    def require_user_id(self, user_id: Optional[str] = None) -> str:
        """The given user id, or the logged-in user's id"""
        resolved = user_id or self.session.user_id
        if not resolved:
            raise AuthenticationError("You are not logged in.", status=None)
        return resolved
