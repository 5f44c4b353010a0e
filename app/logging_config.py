"""
ProcureHub Logging Configuration
Structured logging with context for request tracing and workflow auditing
"""
import logging
import sys
import json
import traceback
from datetime import datetime, timezone
from typing import Dict, Optional
from functools import wraps
import time
import os

# ============================================================
# LOG LEVELS
# ============================================================

LOG_LEVEL = os.environ.get("PROCUREHUB_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = os.environ.get("PROCUREHUB_LOG_FORMAT", "json")  # json or text

# ============================================================
# STRUCTURED LOGGING
# ============================================================

class StructuredLogger:
    """Logger that attaches keyword context to every record"""

    def __init__(self, name: str):
        self.name = name
        self.logger = logging.getLogger(name)
        self.logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))

        if not self.logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(StructuredFormatter() if LOG_FORMAT == "json" else TextFormatter())
            self.logger.addHandler(handler)

    def _log(self, level: str, message: str, **context):
        extra = {
            "context": context,
            "logger_name": self.name,
        }
        getattr(self.logger, level)(message, extra=extra)

    def debug(self, message: str, **context):
        self._log("debug", message, **context)

    def info(self, message: str, **context):
        self._log("info", message, **context)

    def warning(self, message: str, **context):
        self._log("warning", message, **context)

    def error(self, message: str, error: Optional[Exception] = None, **context):
        if error:
            context["error_type"] = type(error).__name__
            context["error_message"] = str(error)
            context.setdefault("traceback", traceback.format_exc())
        self._log("error", message, **context)


class StructuredFormatter(logging.Formatter):
    """Formats logs as JSON"""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": getattr(record, "logger_name", record.name),
            "message": record.getMessage(),
        }

        if hasattr(record, "context"):
            log_data.update(record.context)

        return json.dumps(log_data, default=str)


class TextFormatter(logging.Formatter):
    """Formats logs as readable text"""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        timestamp = datetime.now(timezone.utc).strftime("%H:%M:%S")

        parts = [
            f"{color}[{timestamp}]",
            f"[{record.levelname}]",
            f"{self.RESET}{record.getMessage()}",
        ]

        if hasattr(record, "context") and record.context:
            context_str = " ".join(f"{k}={v}" for k, v in record.context.items() if k != "traceback")
            if context_str:
                parts.append(f"\033[90m({context_str}){self.RESET}")

        return " ".join(parts)


# ============================================================
# FUNCTION TIMING DECORATOR
# ============================================================

def timed(logger: StructuredLogger):
    """Decorator to log how long a workflow operation took"""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            start = time.time()
            try:
                result = func(*args, **kwargs)
            except Exception:
                duration = (time.time() - start) * 1000
                logger.debug(
                    f"{func.__name__} raised",
                    function=func.__name__,
                    duration_ms=round(duration, 2),
                )
                raise
            duration = (time.time() - start) * 1000
            logger.debug(
                f"{func.__name__} completed",
                function=func.__name__,
                duration_ms=round(duration, 2),
            )
            return result

        return wrapper

    return decorator


# ============================================================
# LOGGER INSTANCES
# ============================================================

_loggers: Dict[str, StructuredLogger] = {}


def get_logger(name: str) -> StructuredLogger:
    """Get or create a logger under the procurehub namespace"""
    full_name = f"procurehub.{name}"
    if full_name not in _loggers:
        _loggers[full_name] = StructuredLogger(full_name)
    return _loggers[full_name]


api_logger = get_logger("api")
workflow_logger = get_logger("workflow")
mail_logger = get_logger("mail")
db_logger = get_logger("db")
