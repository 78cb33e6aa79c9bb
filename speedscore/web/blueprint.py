"""Blueprint exposing public tournament data as JSON."""

from __future__ import annotations

from typing import Any, Optional

from flask import Blueprint, Flask, Response, current_app, jsonify

from speedscore.api.errors import ApiError, ScheduleError
from speedscore.engine.schedule import TournamentSchedule
from speedscore.services.competitions import CompetitionService
from speedscore.utils.logger_config import get_logger

logger = get_logger("web")

public_bp = Blueprint("speedscore_public", __name__, url_prefix="/public")


def _get_competitions() -> CompetitionService:
    service: Optional[CompetitionService] = current_app.extensions.get("speedscore_competitions")
    if service is None:
        raise RuntimeError("Public blueprint used without a competition service")
    return service


def _success(data: Any) -> Response:
    response = jsonify({"status": "success", "data": data})
    cache_timeout = current_app.config.get("SPEEDSCORE_CACHE_TIMEOUT", 0)
    if cache_timeout:
        response.cache_control.public = True
        response.cache_control.max_age = cache_timeout
    return response


def _error(exc: ApiError):
    status = exc.status if exc.status and exc.status >= 400 else 502
    return jsonify({"status": "error", "message": exc.message}), status


@public_bp.errorhandler(ApiError)
def handle_api_error(exc: ApiError):
    logger.warning(f"Backend request failed ({exc.status}): {exc.message}")
    return _error(exc)


@public_bp.route("/health", methods=["GET"])
def health() -> Response:
    return jsonify({"status": "success", "data": {"healthy": True}})


@public_bp.route("/api/tournaments", methods=["GET"])
def list_tournaments() -> Response:
    return _success(_get_competitions().public_tournaments() or [])


@public_bp.route("/api/tournaments/<unique_name>", methods=["GET"])
def get_tournament(unique_name: str):
    tournament = _get_competitions().public_tournament(unique_name)
    if not tournament:
        return jsonify({"status": "error", "message": "Tournament not found"}), 404

    # Day labels for the schedule, when the tournament has dates
    days = []
    if isinstance(tournament, dict) and (tournament.get("basicInfo") or {}).get("startDate"):
        try:
            days = TournamentSchedule.from_tournament(tournament).day_options()
        except ScheduleError as exc:
            logger.warning(f"Could not build schedule for {unique_name}: {exc}")
    return _success({"tournament": tournament, "days": days})


@public_bp.route("/api/tournaments/<unique_name>/leaderboard", methods=["GET"])
def get_leaderboard(unique_name: str) -> Response:
    return _success(_get_competitions().public_leaderboard(unique_name))


@public_bp.route("/api/tournaments/<unique_name>/teesheet", methods=["GET"])
def get_tee_sheet(unique_name: str) -> Response:
    return _success(_get_competitions().public_tee_sheet(unique_name))


def register_public_blueprint(app: Flask, competitions: CompetitionService, cache_timeout: int = 0) -> None:
    app.extensions["speedscore_competitions"] = competitions
    app.config["SPEEDSCORE_CACHE_TIMEOUT"] = cache_timeout
    app.register_blueprint(public_bp)
