"""
Utility modules for SpeedScore.

This package contains logging and configuration helpers together with the
pure calendar, time and currency functions used by the engine.
"""

from .logger_config import setup_logging, get_logger
from .config_manager import ConfigManager, get_config, set_config

__all__ = [
    "setup_logging",
    "get_logger",
    "ConfigManager",
    "get_config",
    "set_config",
]
