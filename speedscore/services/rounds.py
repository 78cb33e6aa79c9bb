"""Logged speedgolf rounds."""

from typing import Any, Dict, List, Optional

from speedscore.api.errors import ApiError
from speedscore.models.models import Round
from speedscore.services.base import BaseService
from speedscore.utils.logger_config import get_logger

logger = get_logger("round_service")


class RoundService(BaseService):

    def list_rounds(self) -> List[Round]:
        data = self.client.get("rounds", context="Failed to fetch rounds") or []
        self.session.cache_rounds(data)
        return [Round.from_dict(r) for r in data]

    def get(self, round_id: str) -> Round:
        return Round.from_dict(self.client.get(f"rounds/{round_id}", context="Failed to fetch round"))

    def with_junction_ids(self, round_data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Add the ids the backend links a round with.

        The course is matched by short name and the tee by name against the
        cached courses; unknown names leave the id as None.
        """
        minutes = int(round_data.get("minutes") or 0)
        seconds = int(round_data.get("seconds") or 0)
        if not 0 <= seconds < 60:
            raise ApiError(f"Seconds must be between 0 and 59, got {seconds}", status=None)

        tee = round_data.get("tee")
        tee_name = tee.get("name") if isinstance(tee, dict) else tee

        course_id: Optional[str] = None
        tee_id: Optional[str] = None
        for cached in self.session.courses:
            short_name = cached.get("shortName") or ""
            if short_name.lower() == str(round_data.get("course") or "").lower():
                course_id = cached.get("id") or cached.get("_id")
                for tee_data in (cached.get("tees") or {}).values():
                    if tee_name and (tee_data.get("name") or "").lower() == tee_name.lower():
                        tee_id = tee_data.get("_id")
                break

        if course_id is None:
            logger.warning(f"Course {round_data.get('course')!r} not found in cached courses")

        return {
            **round_data,
            "playerId": self.session.user_id,
            "courseId": course_id,
            "teeId": tee_id,
            "time": minutes * 60 + seconds,
        }

    def log_round(self, round_data: Dict[str, Any]) -> Round:
        data = self.client.post("rounds", json=self.with_junction_ids(round_data), context="Failed to log round")
        self.session.cache_rounds(self.session.rounds + [data])
        logger.info(f"Logged round on {round_data.get('date')} at {round_data.get('course')}")
        return Round.from_dict(data)

    def update_round(self, round_id: str, round_data: Dict[str, Any]) -> Round:
        data = self.client.put(f"rounds/{round_id}", json=self.with_junction_ids(round_data),
                               context="Failed to update round")
        self.session.cache_rounds([
            data if (r.get("_id") or r.get("id")) == round_id else r for r in self.session.rounds
        ])
        return Round.from_dict(data)

    def delete_round(self, round_id: str) -> None:
        self.client.delete(f"rounds/{round_id}", context="Failed to delete round")
        self.session.cache_rounds([r for r in self.session.rounds if (r.get("_id") or r.get("id")) != round_id])
        logger.info(f"Deleted round {round_id}")
