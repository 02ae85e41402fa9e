"""
Logging configuration for the TalentHub billing API.

Everything goes to stdout and to a size-rotated file. Billing code logs
webhook payload details, so a filter masks Stripe keys, webhook secrets and
bearer tokens before any handler formats a record.
"""
import logging
import re
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

REDACTED = "***REDACTED***"

SENSITIVE_KEYS = (
    "password", "token", "secret", "key", "signature",
    "database_url", "authorization",
)

_SECRET_PATTERNS = (
    re.compile(r"\b(sk|rk|pk)_(live|test)_[A-Za-z0-9]+"),
    re.compile(r"\bwhsec_[A-Za-z0-9]+"),
    re.compile(r"(?i)bearer\s+[A-Za-z0-9\-_.=]+"),
    re.compile(r"v1=[0-9a-f]{16,}"),
)

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

QUIET_LOGGERS = ("uvicorn", "uvicorn.access", "stripe", "sqlalchemy.engine", "alembic.runtime.migration")


def redact_secrets(text: str) -> str:
    for pattern in _SECRET_PATTERNS:
        text = pattern.sub(REDACTED, text)
    return text


class SecretRedactingFilter(logging.Filter):
    """Rewrites record messages with secrets masked; never drops a record."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact_secrets(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def setup_logging(log_level: str = "INFO", log_dir: str = "logs", log_file: str = "talenthub.log"):
    """
    Configure root logging.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL (unknown -> INFO)
        log_dir: Directory for the rotating log file, created if missing
        log_file: File name inside log_dir
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    redactor = SecretRedactingFilter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))

    # Webhook reconciliation failures are read from this file
    file_handler = RotatingFileHandler(log_path / log_file, maxBytes=10 * 1024 * 1024, backupCount=5)
    file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))

    for handler in (console_handler, file_handler):
        handler.setLevel(level)
        handler.addFilter(redactor)
        root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def sanitize_log_data(data: dict) -> dict:
    """
    Copy of data with values under sensitive-looking keys redacted.

    Used for settings and Stripe metadata dumps.
    """
    return {
        key: REDACTED if any(sensitive in key.lower() for sensitive in SENSITIVE_KEYS) else value
        for key, value in data.items()
    }
