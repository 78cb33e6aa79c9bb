"""Standalone Flask application for the public tournament viewer."""

from __future__ import annotations

import argparse
from typing import Optional

from flask import Flask

from speedscore.api.client import ApiClient
from speedscore.services.competitions import CompetitionService
from speedscore.session.store import SessionStore
from speedscore.utils.config_manager import get_config
from speedscore.utils.logger_config import get_logger

from .blueprint import register_public_blueprint

logger = get_logger("web")


def create_app(client: Optional[ApiClient] = None) -> Flask:
    """Create a Flask app serving the public tournament API."""

    config = get_config()
    if client is None:
        # Public endpoints need no login, so the stored session is never read
        client = ApiClient(session_store=SessionStore(path=None, autoload=False))

    app = Flask(__name__)
    register_public_blueprint(
        app,
        CompetitionService(client),
        cache_timeout=int(config.get("web.cache_timeout", 0) or 0),
    )
    logger.info(f"Public viewer backed by {client.base_url}")
    return app


def main() -> None:
    config = get_config()
    parser = argparse.ArgumentParser(description="Run the SpeedScore public tournament viewer")
    parser.add_argument(
        "--host",
        default=config.get("web.host", "127.0.0.1"),
        help="Host to bind the viewer (default: web.host from config)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=config.get("web.port", 5600),
        help="Port to bind the viewer (default: web.port from config)",
    )
    parser.add_argument("--debug", action="store_true", help="Enable Flask debug mode")
    args = parser.parse_args()

    app = create_app()
    app.run(host=args.host, port=args.port, debug=args.debug)


if __name__ == "__main__":
    main()
