"""
StreakMint - Structured Logging

- JSON log format for easy parsing
- Daily log rotation
- Fields passed through ``extra=`` are carried into the JSON entry
- Addresses truncated for privacy
"""

import logging
import os
from datetime import datetime, timezone
from logging.handlers import TimedRotatingFileHandler
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger


def truncate_address(address: str) -> str:
    """Truncate an address for log output."""
    if not address or len(address) < 10:
        return "UNKNOWN"
    return f"{address[:6]}...{address[-4:]}"


class RewardJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter adding service metadata and source location to every entry.

    Custom fields supplied via ``extra=`` (``event``, ``token_id`` ...) are
    merged into the top level of the entry by python-json-logger.
    """

    def __init__(
        self,
        fmt: str = "%(timestamp)s %(level)s %(name)s %(message)s",
        service_name: str = "streakmint",
    ):
        super().__init__(fmt=fmt)
        self.service_name = service_name

    def add_fields(
        self,
        log_record: Dict[str, Any],
        record: logging.LogRecord,
        message_dict: Dict[str, Any],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        # fmt names these, so the base class leaves them as None placeholders
        if not log_record.get("timestamp"):
            log_record["timestamp"] = datetime.fromtimestamp(
                record.created, timezone.utc
            ).isoformat()
        if not log_record.get("level"):
            log_record["level"] = record.levelname.lower()

        log_record["service"] = self.service_name
        log_record["source"] = {
            "function": record.funcName,
            "module": record.module,
            "line": record.lineno,
        }


def configure_logging(
    log_level: str = "INFO",
    log_dir: Optional[str] = None,
    backup_count: int = 30,
) -> logging.Logger:
    """
    Configure the ``streakmint`` logger hierarchy.

    Console output is always JSON. When ``log_dir`` is given, a midnight-rotated
    JSON file is written there too.

    Args:
        log_level: Minimum log level name
        log_dir: Directory for rotated log files
        backup_count: Number of rotated files to keep

    Returns:
        The configured package logger
    """
    logger = logging.getLogger("streakmint")
    logger.setLevel(getattr(logging, log_level.upper()))

    # Prevent duplicate handlers on repeated configuration
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(RewardJsonFormatter())
    logger.addHandler(console_handler)

    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
        file_handler = TimedRotatingFileHandler(
            os.path.join(log_dir, "streakmint.json.log"),
            when="midnight",
            interval=1,
            backupCount=backup_count,
            encoding="utf-8",
            utc=True,
        )
        file_handler.setFormatter(RewardJsonFormatter())
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger
