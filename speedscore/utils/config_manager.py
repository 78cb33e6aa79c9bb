"""
Configuration management for the SpeedScore client.

Values are layered: built-in defaults, then the JSON file, then
``SPEEDSCORE_*`` environment variables. Keys are read with dot notation,
e.g. ``get_config().get("api.base_url")``.
"""

import copy
import json
import os
from typing import Dict, Any, Optional, Tuple

from speedscore.utils.logger_config import get_logger

logger = get_logger("config_manager")

DEFAULT_CONFIG_PATH = "config/speedscore_config.json"

DEFAULT_CONFIG: Dict[str, Any] = {
    "api": {
        "base_url": "http://localhost:4000/api/",
        "timeout": 30,
        "token_refresh_buffer_minutes": 5,
        "competition_endpoint": "competition",
        "usernames_endpoint": "users/usernames"
    },
    "session": {
        "path": os.path.join(os.path.expanduser("~"), ".speedscore", "session.json")
    },
    "log": {
        "level": "WARNING",
        "file": None,
        "enable_colors": True
    },
    "web": {
        "host": "127.0.0.1",
        "port": 5600,
        "cache_timeout": 60
    },
    "tournament": {
        "default_tee_time": "07:00",
        "registration_open_offset": -30,
        "registration_close_offset": -3,
        "withdrawal_deadline_offset": -7
    }
}

ENV_MAPPINGS: Dict[str, Tuple[str, ...]] = {
    "SPEEDSCORE_API_BASE_URL": ("api", "base_url"),
    "SPEEDSCORE_API_TIMEOUT": ("api", "timeout"),
    "SPEEDSCORE_SESSION_PATH": ("session", "path"),
    "SPEEDSCORE_LOG_LEVEL": ("log", "level"),
    "SPEEDSCORE_LOG_FILE": ("log", "file"),
    "SPEEDSCORE_LOG_ENABLE_COLORS": ("log", "enable_colors"),
    "SPEEDSCORE_WEB_HOST": ("web", "host"),
    "SPEEDSCORE_WEB_PORT": ("web", "port"),
}

_TRUE = ('1', 'true', 'yes', 'on')
_FALSE = ('0', 'false', 'no', 'off')


def _deep_merge(target: Dict[str, Any], source: Dict[str, Any]) -> None:
    for key, value in source.items():
        if isinstance(target.get(key), dict) and isinstance(value, dict):
            _deep_merge(target[key], value)
        else:
            target[key] = value


def coerce_env_value(raw: str, current: Any) -> Any:
    """
    Convert an environment string to the type of the value it replaces.

    Booleans accept 1/0, true/false, yes/no and on/off. Numbers keep their
    int or float type. Anything else (including a ``None`` default) stays a
    string. Raises ValueError when the string does not fit.
    """
    if isinstance(current, bool):
        lowered = raw.strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        raise ValueError(f"expected a boolean, got {raw!r}")
    if isinstance(current, int):
        return int(raw)
    if isinstance(current, float):
        return float(raw)
    return raw


class ConfigManager:
    """Layered configuration for the SpeedScore client"""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path or DEFAULT_CONFIG_PATH
        self._config: Dict[str, Any] = copy.deepcopy(DEFAULT_CONFIG)
        self._load_file()
        self._load_env()

    def _load_file(self) -> None:
        if not os.path.exists(self.config_path):
            logger.debug(f"No config file at {self.config_path}, using defaults")
            return
        try:
            with open(self.config_path, 'r', encoding='utf-8') as f:
                file_config = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable config file {self.config_path}: {e}")
            return
        if not isinstance(file_config, dict):
            logger.warning(f"Ignoring config file {self.config_path}: top level must be an object")
            return
        _deep_merge(self._config, file_config)
        logger.info(f"Loaded configuration from {self.config_path}")

    def _load_env(self) -> None:
        for env_var, path in ENV_MAPPINGS.items():
            raw = os.getenv(env_var)
            if raw is None:
                continue
            key = '.'.join(path)
            try:
                self.set(key, coerce_env_value(raw, self.get(key)))
            except ValueError as e:
                logger.warning(f"Ignoring {env_var}: {e}")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a value by dot-separated key.

        Args:
            key: e.g. "web.port"
            default: Returned when any part of the key is missing

        Returns:
            The stored value or ``default``
        """
        current: Any = self._config
        for part in key.split('.'):
            if not isinstance(current, dict) or part not in current:
                return default
            current = current[part]
        return current

    def set(self, key: str, value: Any) -> None:
        """Set a value by dot-separated key, creating sections as needed"""
        *sections, last = key.split('.')
        current = self._config
        for part in sections:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]
        current[last] = value

    def get_section(self, section: str) -> Dict[str, Any]:
        """Return a copy of one top-level section"""
        return copy.deepcopy(self._config.get(section, {}))

    def to_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self._config)

    def save(self, path: Optional[str] = None) -> None:
        """Write the merged configuration as JSON to ``path`` or the loaded path"""
        save_path = path or self.config_path
        directory = os.path.dirname(save_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(save_path, 'w', encoding='utf-8') as f:
            json.dump(self._config, f, indent=2, ensure_ascii=False)
        logger.info(f"Configuration saved to {save_path}")


_global_config: Optional[ConfigManager] = None


def get_config(config_path: Optional[str] = None) -> ConfigManager:
    """Return the process-wide configuration, loading it on first use"""
    global _global_config
    if _global_config is None:
        _global_config = ConfigManager(config_path)
    return _global_config


def set_config(config_manager: Optional[ConfigManager]) -> None:
    """Install a configuration instance, or pass None to reset"""
    global _global_config
    _global_config = config_manager
