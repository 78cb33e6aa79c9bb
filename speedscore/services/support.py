from typing import Any, Dict

from speedscore.services.base import BaseService


class SupportService(BaseService):

    def create_ticket(self, ticket: Dict[str, Any]) -> Any:
        """Submit a support ticket; no login required"""
        return self.client.post("support/tickets", json=ticket, auth=False, context="Failed to create support ticket")
