"""Read-only Flask viewer for published tournaments."""

from .app import create_app
from .blueprint import public_bp, register_public_blueprint

__all__ = ["create_app", "public_bp", "register_public_blueprint"]
