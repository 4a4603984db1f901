"""Logging configuration and logger factory for the Patient Records client.

The console shows messages at the configured level; the log file always
receives DEBUG, including the REST transaction log. Handlers installed here
are tagged so that reconfiguring (for example from a second CLI invocation in
the same process) replaces them without touching handlers owned by others.
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from .formatters import PIIRedactingFormatter

DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_LOG_FILE = Path("logs") / "patient-records.log"
LOG_FILE_ENV_VAR = "PATIENT_RECORDS_LOG_FILE"
MAX_LOG_FILE_SIZE = 10 * 1024 * 1024  # 10MB
BACKUP_COUNT = 5

# Chatty at DEBUG; capped so --verbose stays readable
QUIET_LOGGERS = ("urllib3",)

_HANDLER_TAG = "_patient_records_handler"


def _parse_level(level: str) -> int:
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(
            f"Invalid log level: {level}. "
            f"Must be one of: DEBUG, INFO, WARNING, ERROR, CRITICAL"
        )
    return numeric_level


def _resolve_log_file(log_file: Optional[Path]) -> Path:
    if log_file is not None:
        return Path(log_file)
    env_log_file = os.environ.get(LOG_FILE_ENV_VAR)
    return Path(env_log_file) if env_log_file else DEFAULT_LOG_FILE


def _tag(handler: logging.Handler) -> logging.Handler:
    setattr(handler, _HANDLER_TAG, True)
    return handler


def _remove_own_handlers(root_logger: logging.Logger) -> None:
    for handler in list(root_logger.handlers):
        if getattr(handler, _HANDLER_TAG, False):
            root_logger.removeHandler(handler)
            handler.close()


def configure_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    redact_pii: bool = False,
) -> None:
    """Configure console and file logging for the Patient Records client.

    Safe to call repeatedly; each call replaces the handlers installed by the
    previous one.

    Args:
        level: Console log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
               The file handler always logs at DEBUG.
        log_file: Path to log file. If None, uses PATIENT_RECORDS_LOG_FILE or
                 DEFAULT_LOG_FILE.
        redact_pii: Whether to redact patient names and credentials from logs

    Raises:
        ValueError: If invalid log level is provided
        RuntimeError: If log directory cannot be created

    Example:
        >>> configure_logging(level="DEBUG", redact_pii=True)
        >>> configure_logging(level="INFO", log_file=Path("custom/app.log"))
    """
    console_level = _parse_level(level)
    log_path = _resolve_log_file(log_file)

    try:
        log_path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise RuntimeError(
            f"Failed to create log directory: {log_path.parent}. "
            f"Ensure write permissions are available. Error: {e}"
        ) from e

    root_logger = logging.getLogger()
    _remove_own_handlers(root_logger)
    root_logger.setLevel(logging.DEBUG)

    formatter = PIIRedactingFormatter(fmt=DEFAULT_LOG_FORMAT, redact_pii=redact_pii)

    console_handler = _tag(logging.StreamHandler())
    console_handler.setLevel(console_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    try:
        file_handler = _tag(RotatingFileHandler(
            filename=str(log_path),
            maxBytes=MAX_LOG_FILE_SIZE,
            backupCount=BACKUP_COUNT,
            encoding="utf-8",
        ))
    except OSError as e:
        root_logger.warning(f"Cannot write log file {log_path}: {e}. Logging to console only.")
    else:
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(module_name: str) -> logging.Logger:
    """Return the logger for a module (pass ``__name__``)."""
    return logging.getLogger(module_name)
