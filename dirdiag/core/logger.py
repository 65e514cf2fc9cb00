from __future__ import annotations

from datetime import UTC, datetime
import logging
from logging.handlers import RotatingFileHandler
import os

from dirdiag.core.paths.global_paths import LOG_DIR, LOG_FILE

logger = logging.getLogger("dirdiag")

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class StructuredLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=UTC).isoformat()
        ppid = os.getppid()
        pid = os.getpid()
        level = record.levelname
        message = record.getMessage().replace("\\", "\\\\").replace("\n", "\\n")

        line = f"{timestamp} {ppid} {pid} {level} {message}"

        if record.exc_info:
            exc_text = self.formatException(record.exc_info).replace("\n", "\\n")
            line = f"{line} {exc_text}"

        return line


def _resolve_log_level() -> int:
    if os.environ.get("DEBUG_MODE") == "true":
        return logging.DEBUG

    log_level_str = os.environ.get("LOG_LEVEL", "WARNING").upper()
    if log_level_str not in VALID_LOG_LEVELS:
        log_level_str = "WARNING"
    return getattr(logging, log_level_str, logging.WARNING)


def apply_logging_config(target_logger: logging.Logger) -> None:
    max_bytes = int(os.environ.get("LOG_MAX_BYTES", 10 * 1024 * 1024))

    try:
        LOG_DIR.path.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(
            LOG_FILE.path, maxBytes=max_bytes, backupCount=0, encoding="utf-8"
        )
    except OSError:
        # Read-only home: keep the library silent instead of failing on import.
        target_logger.addHandler(logging.NullHandler())
        return

    handler.setFormatter(StructuredLogFormatter())
    handler.setLevel(_resolve_log_level())

    # Make sure the logger is not gating logs
    target_logger.setLevel(logging.DEBUG)

    target_logger.addHandler(handler)


apply_logging_config(logger)
