"""
Error Logging Service

Error logging for the scan pipeline that:
- Writes to log files with rotation (when LOG_DIR is configured)
- Stores errors in the database for querying (when a session factory is set)
- Captures the pipeline stage, partition and barcode
- Sanitizes sensitive data (API keys never reach the logs)

Usage:
    from foodscan.services.error_logging import error_logger

    try:
        # some code
    except Exception as e:
        error_logger.log_error(e, stage="persistence", context={...})
"""

import json
import logging
import sys
import traceback
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from sqlalchemy.orm import Session

from foodscan.core.config import Settings
from foodscan.models.error_log import ScanErrorLog

logger = logging.getLogger("foodscan.errors")


LOG_FORMAT = '%(asctime)s | %(levelname)s | %(name)s | %(message)s'
DETAILED_LOG_FORMAT = '%(asctime)s | %(levelname)s | %(name)s | %(funcName)s:%(lineno)d | %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

# Keys whose values never reach the logs (substring match)
SENSITIVE_FIELDS = {'password', 'token', 'authorization', 'api_key', 'key', 'secret', 'credential'}
MAX_SANITIZE_DEPTH = 10

SEVERITY_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


def configure_logging(config: Settings) -> None:
    """
    Configure the foodscan loggers.

    Console output always; errors.log and app_detailed.log with rotation
    when LOG_DIR is set and writable.
    """
    root = logging.getLogger("foodscan")
    root.setLevel(logging.DEBUG if config.DEBUG else logging.INFO)

    if not any(isinstance(h, logging.StreamHandler) and not isinstance(h, RotatingFileHandler)
               for h in root.handlers):
        console = logging.StreamHandler()
        console.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        root.addHandler(console)

    if not config.LOG_DIR:
        return

    logs_dir = Path(config.LOG_DIR)
    try:
        logs_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.warning(f"Cannot write to logs directory {logs_dir}: {e}. File logging disabled.")
        return

    if any(isinstance(h, RotatingFileHandler) for h in root.handlers):
        return

    file_handler = RotatingFileHandler(
        logs_dir / "errors.log",
        maxBytes=10 * 1024 * 1024,  # 10 MB
        backupCount=10,
        encoding='utf-8'
    )
    file_handler.setLevel(logging.ERROR)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))

    detailed_handler = RotatingFileHandler(
        logs_dir / "app_detailed.log",
        maxBytes=10 * 1024 * 1024,  # 10 MB
        backupCount=5,
        encoding='utf-8'
    )
    detailed_handler.setLevel(logging.DEBUG)
    detailed_handler.setFormatter(logging.Formatter(DETAILED_LOG_FORMAT, datefmt=DATE_FORMAT))

    root.addHandler(file_handler)
    root.addHandler(detailed_handler)


def _is_sensitive(key: Any) -> bool:
    lowered = str(key).lower()
    return any(field in lowered for field in SENSITIVE_FIELDS)


def sanitize_data(data: Any, depth: int = 0) -> Any:
    """Copy of data with the values of sensitive keys replaced by [REDACTED]."""
    if depth > MAX_SANITIZE_DEPTH:
        return "[MAX_DEPTH]"
    if isinstance(data, dict):
        return {
            key: "[REDACTED]" if _is_sensitive(key) else sanitize_data(value, depth + 1)
            for key, value in data.items()
        }
    if isinstance(data, (list, tuple)):
        return [sanitize_data(item, depth + 1) for item in data]
    return data


def truncate_string(s: str, max_length: int = 10000) -> str:
    if len(s) <= max_length:
        return s
    return f"{s[:max_length]}... [TRUNCATED, total {len(s)} chars]"


class ErrorLogger:
    """
    Error logging service that writes to the log and, optionally, the database.
    """

    def __init__(self):
        self.db_session_factory: Optional[Callable[[], Session]] = None

    def set_db_session_factory(self, factory: Optional[Callable[[], Session]]):
        """Set the database session factory for DB logging."""
        self.db_session_factory = factory

    def log_error(
        self,
        error: Exception,
        severity: str = "error",
        stage: Optional[str] = None,
        partition: Optional[str] = None,
        barcode: Optional[str] = None,
        context: Optional[Dict] = None,
        save_to_db: bool = True
    ) -> Optional[str]:
        """
        Log an error with its pipeline context.

        Args:
            error: The exception that occurred
            severity: debug, info, warning, error, critical
            stage: Pipeline stage (lookup, ocr, persistence)
            partition: Identity partition of the scan
            barcode: Barcode being processed, if any
            context: Additional context data
            save_to_db: Whether to save to database

        Returns:
            Id of the error log entry if saved to DB, None otherwise
        """
        error_type = type(error).__name__
        error_message = str(error)

        # Only available when called from inside an except block
        stack_trace = traceback.format_exc() if sys.exc_info()[0] is not None else None

        sanitized_context = sanitize_data(context) if context else None

        log_message = (
            f"{error_type}: {error_message} | stage={stage or 'N/A'} "
            f"| partition={partition or 'N/A'} | barcode={barcode or 'N/A'}"
        )
        if sanitized_context:
            log_message += f" | context={json.dumps(sanitized_context, default=str)}"

        logger.log(SEVERITY_LEVELS.get(severity, logging.INFO), log_message)

        if not (save_to_db and self.db_session_factory):
            return None

        try:
            db = self.db_session_factory()
            try:
                entry = ScanErrorLog(
                    timestamp=datetime.now(timezone.utc),
                    error_type=error_type,
                    severity=severity,
                    stage=stage,
                    partition=partition,
                    barcode=barcode,
                    message=truncate_string(error_message, 1000),
                    stack_trace=truncate_string(stack_trace, 20000) if stack_trace else None,
                    context_data=sanitized_context,
                )
                db.add(entry)
                db.commit()
                logger.debug(f"Error logged to DB with ID: {entry.id}")
                return entry.id
            finally:
                db.close()
        except Exception as db_err:
            logger.error(f"Failed to save error to database: {db_err}")
            return None


# Singleton instance
error_logger = ErrorLogger()
