"""
SaneRSS Logging Configuration
=============================

Logging setup with coloured console output, structured JSON file output and
component-scoped logger adapters.
"""

import asyncio
import logging
import logging.handlers
import sys
import json
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Any, Optional


_RESERVED_RECORD_FIELDS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "message",
    "taskName",
}


class StructuredFormatter(logging.Formatter):
    """Custom formatter for structured JSON logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured JSON."""
        log_data = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra_fields = {
            k: v
            for k, v in record.__dict__.items()
            if k not in _RESERVED_RECORD_FIELDS
        }

        if extra_fields:
            log_data["extra"] = extra_fields

        return json.dumps(log_data, ensure_ascii=False, default=str)


class ColoredConsoleFormatter(logging.Formatter):
    """Single-line coloured output tagged with component and feed."""

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"
    DIM = "\033[2m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelname, self.RESET)
        clock = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")

        source = getattr(record, "component", None) or record.name
        feed_name = getattr(record, "feed_name", None)
        if feed_name:
            source = f"{source}[{feed_name}]"

        line = (
            f"{self.DIM}{clock}{self.RESET} {color}{record.levelname:<8}{self.RESET} "
            f"{source}: {record.getMessage()}"
        )

        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"

        return line


def setup_logger(
    name: str = "sanerss",
    level: str = "INFO",
    log_file: Optional[str] = None,
    console: bool = True,
    structured: bool = False,
    max_file_size: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5,
) -> logging.Logger:
    """Set up logger with appropriate handlers and formatting.

    Args:
        name: Logger name
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file (optional)
        console: Whether to log to console
        structured: Whether to use structured JSON logging on the console
        max_file_size: Maximum log file size in bytes
        backup_count: Number of backup log files to keep

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper()))

    # Clear existing handlers to avoid duplicates
    logger.handlers.clear()

    if console:
        console_handler = logging.StreamHandler(sys.stdout)

        if structured:
            console_handler.setFormatter(StructuredFormatter())
        else:
            console_handler.setFormatter(ColoredConsoleFormatter())

        logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_path, maxBytes=max_file_size, backupCount=backup_count, encoding="utf-8"
        )

        # File output is always structured
        file_handler.setFormatter(StructuredFormatter())
        logger.addHandler(file_handler)

    return logger


class LoggerAdapter(logging.LoggerAdapter):
    """Adds component context to every record; call-site ``extra`` wins."""

    def process(self, msg: Any, kwargs: Dict[str, Any]) -> tuple:
        kwargs["extra"] = {**self.extra, **(kwargs.get("extra") or {})}
        return msg, kwargs


def get_logger_for_component(
    component_name: str,
    feed_name: Optional[str] = None,
    provider: Optional[str] = None,
) -> LoggerAdapter:
    """Get a logger adapter with component-specific context.

    Args:
        component_name: Name of the component (e.g., 'poller', 'feed_fetcher')
        feed_name: Associated feed name (optional)
        provider: Associated AI provider (optional)

    Returns:
        Logger adapter with context
    """
    base_logger = logging.getLogger(f"sanerss.{component_name}")

    extra_context = {
        "component": component_name,
    }

    if feed_name:
        extra_context["feed_name"] = feed_name
    if provider:
        extra_context["ai_provider"] = provider

    return LoggerAdapter(base_logger, extra_context)


def configure_application_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = "logs/sanerss.log",
    enable_console: bool = True,
    structured_logging: bool = False,
    max_file_size_mb: int = 10,
    backup_count: int = 5,
) -> None:
    """Configure application-wide logging settings.

    Args:
        log_level: Global log level
        log_file: Path to main log file, None disables file logging
        enable_console: Whether to enable console logging
        structured_logging: Whether to use JSON structured logging
        max_file_size_mb: Rotation size of the log file
        backup_count: Number of rotated files to keep
    """
    setup_logger(
        name="sanerss",
        level=log_level,
        log_file=log_file,
        console=enable_console,
        structured=structured_logging,
        max_file_size=max_file_size_mb * 1024 * 1024,
        backup_count=backup_count,
    )

    # Third-party libraries stay quiet unless something goes wrong
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("aiohttp.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("groq").setLevel(logging.WARNING)
    logging.getLogger("feedparser").setLevel(logging.WARNING)


class PerformanceLogger:
    """Times a block and logs its outcome.

    ``duration`` (seconds) is set on exit so callers can put it in results.
    """

    def __init__(self, logger: logging.Logger, operation: str, **context):
        self.logger = logger
        self.operation = operation
        self.context = context
        self.duration: Optional[float] = None
        self._started: Optional[float] = None

    def __enter__(self) -> "PerformanceLogger":
        self._started = time.perf_counter()
        self.logger.debug(f"Starting {self.operation}", extra=self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.duration = time.perf_counter() - self._started
        extra = {**self.context, "duration_seconds": round(self.duration, 3)}

        if exc_type is None:
            self.logger.info(f"Completed {self.operation} in {self.duration:.3f}s", extra=extra)
        elif issubclass(exc_type, asyncio.CancelledError):
            self.logger.info(f"Cancelled {self.operation} after {self.duration:.3f}s", extra=extra)
        else:
            self.logger.error(f"Failed {self.operation} after {self.duration:.3f}s: {exc_val}", extra=extra)
