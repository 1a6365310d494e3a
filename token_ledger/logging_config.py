"""
Structured Logging Configuration Module

JSON (or plain text) log output for the token ledger. Operations attach the
caller, the operation name, the resource touched and free-form details to
each record through log_action.
"""

import logging
import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional


# Record attributes set by log_action, in output order
STRUCTURED_FIELDS = ("caller", "operation", "resource", "extra")

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """One JSON object per record; unset structured fields are omitted"""

    def format(self, record):
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in STRUCTURED_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                log_entry[name] = value

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def _build_handler(log_format: str) -> logging.Handler:
    handler = logging.StreamHandler()
    if log_format.lower() == "text":
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))
    else:
        handler.setFormatter(JSONFormatter())
    return handler


def setup_logging(level: str = "INFO", logger_name: str = "token_ledger",
                  log_format: str = "json") -> logging.Logger:
    """
    Configure the application logger with a single stream handler.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        logger_name: Logger to configure; child loggers inherit its handler
        log_format: "json" for structured output, "text" for plain lines

    Returns:
        The configured logger
    """
    logger = logging.getLogger(logger_name)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    logger.addHandler(_build_handler(log_format))
    logger.setLevel(getattr(logging, level.upper()))
    logger.propagate = False
    return logger


def get_logger(name: str = "token_ledger") -> logging.Logger:
    return logging.getLogger(name)


def log_action(logger: logging.Logger, level: str, message: str,
               caller: Optional[str] = None, operation: Optional[str] = None,
               resource: Optional[str] = None, extra: Optional[dict] = None):
    """
    Log a token operation with structured fields.

    caller is kept even when empty, since the empty identity is the null
    party; the other fields are dropped when falsy.
    """
    levelno = getattr(logging, level.upper())
    if not logger.isEnabledFor(levelno):
        return

    fields: Dict[str, Any] = {}
    if caller is not None:
        fields["caller"] = caller
    if operation:
        fields["operation"] = operation
    if resource:
        fields["resource"] = resource
    if extra:
        fields["extra"] = extra

    logger.log(levelno, message, extra=fields)
