"""
Logging configuration for the block flow compiler.

Library modules only create loggers with ``logging.getLogger(__name__)``;
the root logger is configured here, once, by the ``flowc`` entry point.
Diagnostics are written to stderr because compiled graphs go to stdout.
"""

import json
import logging
import re
import sys
from pathlib import Path
from typing import Dict, Optional, Union

DETAILED_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
SIMPLE_FORMAT = "%(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class Colors:
    """ANSI escape codes used by the console formatter"""
    RESET = "\033[0m"
    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    MAGENTA = "\033[95m"
    CYAN = "\033[96m"
    GRAY = "\033[90m"


class ColoredFormatter(logging.Formatter):
    """Console formatter highlighting level, timestamp and logger name"""

    LEVEL_COLORS: Dict[int, str] = {
        logging.DEBUG: Colors.GRAY,
        logging.INFO: Colors.GREEN,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.MAGENTA,
    }

    _timestamp = re.compile(r"^(\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2})")

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)

        color = self.LEVEL_COLORS.get(record.levelno, Colors.RESET)
        text = text.replace(record.levelname, f"{color}{record.levelname}{Colors.RESET}", 1)
        text = self._timestamp.sub(f"{Colors.CYAN}\\1{Colors.RESET}", text, count=1)
        text = text.replace(f" {record.name} - ", f" {Colors.BLUE}{record.name}{Colors.RESET} - ", 1)
        return text


class JSONLineFormatter(logging.Formatter):
    """One JSON object per record, for log shippers"""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": self.formatTime(record, DATE_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


def _console_formatter(log_format: str, use_colors: bool) -> logging.Formatter:
    if log_format == "json":
        return JSONLineFormatter()

    fmt = SIMPLE_FORMAT if log_format == "simple" else DETAILED_FORMAT
    formatter_class = ColoredFormatter if use_colors else logging.Formatter
    return formatter_class(fmt, datefmt=DATE_FORMAT)


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "detailed",
    log_file: Optional[Union[str, Path]] = None,
    enable_colors: bool = True
) -> logging.Logger:
    """
    Configure the root logger

    Args:
        log_level: Level name; unknown names fall back to INFO
        log_format: 'simple', 'detailed' or 'json'
        log_file: Optional file that receives a plain copy of the log
        enable_colors: Color console output when stderr is a terminal

    Returns:
        The root logger
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    if not isinstance(level, int):
        level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(_console_formatter(log_format, enable_colors and sys.stderr.isatty()))
    root.addHandler(console)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(DETAILED_FORMAT, datefmt=DATE_FORMAT))
        root.addHandler(file_handler)

    return root


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the specified name"""
    return logging.getLogger(name)


def configure_logging_from_settings(log_file: Optional[Union[str, Path]] = None) -> logging.Logger:
    """Configure logging from ``core.config.settings``; debug mode forces DEBUG"""
    from core.config import settings

    log_level = "DEBUG" if settings.debug else settings.log_level
    root = setup_logging(
        log_level=log_level,
        log_format=settings.log_format,
        log_file=log_file,
    )

    get_logger(__name__).debug(f"Logging configured with level: {log_level}, format: {settings.log_format}")
    return root
