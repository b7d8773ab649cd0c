"""
Logging setup for the JobScout API.

One root configuration for the whole process; modules log through
logging.getLogger(__name__). Secrets never go into log lines.
"""
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Chatty client libraries only surface warnings
QUIET_LOGGERS = ("uvicorn", "uvicorn.access", "stripe", "openai", "httpx", "sqlalchemy.engine")

SENSITIVE_KEYS = (
    "password", "token", "secret", "api_key", "signature",
    "authorization", "database_url",
)

REDACTED = "***REDACTED***"


def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Configure the root logger.

    Safe to call more than once; existing root handlers are replaced.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        log_file: Optional path for a rotating log file (10MB x 5)
    """
    level = getattr(logging, (log_level or "INFO").upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(level)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(console)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(path, maxBytes=10 * 1024 * 1024, backupCount=5)
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
        root.addHandler(file_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def _is_sensitive(key: str) -> bool:
    key = key.lower()
    return any(marker in key for marker in SENSITIVE_KEYS)


def sanitize_log_data(data: Any) -> Any:
    """
    Copy of data with secret-looking values redacted.

    Walks nested dicts and lists; non-empty values under sensitive keys are
    replaced, empty ones are kept so "missing header" stays visible.
    """
    if isinstance(data, dict):
        return {
            key: (REDACTED if value and _is_sensitive(str(key)) else sanitize_log_data(value))
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [sanitize_log_data(item) for item in data]
    return data
