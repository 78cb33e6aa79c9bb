"""
Logging setup for the SpeedScore client

Console records go to stderr so that command output on stdout can be piped.
The console handler colors the level name; the optional log file is plain text
and always records DEBUG. Both handlers share a filter that masks bearer
tokens and JWTs.
"""

import logging
import re
import sys
from typing import Optional, Union

LOG_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s - %(message)s'
FILE_LOG_FORMAT = '%(asctime)s.%(msecs)03d | %(levelname)-8s | %(name)s | %(filename)s:%(lineno)d - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

LEVEL_COLORS = {
    'DEBUG': '\033[32m',
    'INFO': '\033[36m',
    'WARNING': '\033[33m',
    'ERROR': '\033[31m',
    'CRITICAL': '\033[41m\033[97m',
}
RESET = '\033[0m'


class ColoredFormatter(logging.Formatter):
    """Console formatter that colors the level name"""

    def format(self, record):
        levelname = record.levelname
        color = LEVEL_COLORS.get(levelname)
        if color:
            record.levelname = f"{color}{levelname:<8}{RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


class TokenRedactingFilter(logging.Filter):
    """Mask bearer tokens and JWT-looking strings in log messages"""

    BEARER = re.compile(r'(Bearer\s+)[A-Za-z0-9\-_\.=]+')
    JWT = re.compile(r'eyJ[A-Za-z0-9\-_]+\.[A-Za-z0-9\-_]+\.[A-Za-z0-9\-_]+')

    def filter(self, record):
        message = record.getMessage()
        redacted = self.JWT.sub('***', self.BEARER.sub(r'\1***', message))
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def parse_level(level: Union[str, int, None], default: int = logging.WARNING) -> int:
    """Accept a level name ("debug", "WARNING") or a numeric level"""
    if isinstance(level, int):
        return level
    if not level:
        return default
    text = str(level).strip()
    if text.isdigit():
        return int(text)
    value = logging.getLevelName(text.upper())
    return value if isinstance(value, int) else default


def setup_logging(
    level: Union[str, int] = "WARNING",
    log_file: Optional[str] = None,
    enable_colors: bool = True
) -> None:
    """
    Replace the root handlers with the SpeedScore console (and file) handlers

    Args:
        level: Console level, by name or number
        log_file: Optional path; the file is appended to and records DEBUG
        enable_colors: Color level names on the console
    """
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    redactor = TokenRedactingFilter()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(parse_level(level))
    formatter_class = ColoredFormatter if enable_colors else logging.Formatter
    console_handler.setFormatter(formatter_class(LOG_FORMAT, datefmt=DATE_FORMAT))
    console_handler.addFilter(redactor)
    root.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, datefmt=DATE_FORMAT))
        file_handler.addFilter(redactor)
        root.addHandler(file_handler)

    root.setLevel(logging.DEBUG)


def get_logger(name: str) -> logging.Logger:
    """Return the logger for a SpeedScore component (e.g. "api_client")"""
    return logging.getLogger(name)
