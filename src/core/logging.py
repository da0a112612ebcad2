"""Structured logging built on Loguru.

This module configures a single Loguru pipeline for the whole process and
routes standard library logging (uvicorn, python-multipart) into it.

Formatter types:
- **console**: Human-readable with inline context (development)
- **json**: Structured one-line JSON entries (production)

Context bound with ``logger.bind`` or ``logger.contextualize`` (such as the
correlation ID) is rendered inline by the console formatter and merged into
the JSON entry by the structured formatter.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Final, Protocol, cast

import orjson
from loguru import logger

from src.core.config import get_settings


class _LoggingState:
    """Simple state holder to track if logging has been configured."""

    def __init__(self) -> None:
        self.configured = False


_state = _LoggingState()


class SettingsProtocol(Protocol):
    """Protocol for settings objects that setup_logging can accept."""

    @property
    def debug(self) -> bool:
        """Debug mode flag."""
        ...

    @property
    def log_config(self) -> LogConfigProtocol:
        """Log configuration."""
        ...


class LogConfigProtocol(Protocol):
    """Protocol for log configuration objects."""

    @property
    def log_level(self) -> str:
        """Logging level."""
        ...

    @property
    def log_formatter_type(self) -> str | None:
        """Log formatter type."""
        ...


DEFAULT_LOG_FORMAT: Final[str] = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "{message}"
)
CORRELATION_ID_DISPLAY_LENGTH: Final[int] = 8
MAX_FIELD_VALUE_LENGTH: Final[int] = 100
REDACTED: Final[str] = "[REDACTED]"

# Fields shown first, in this order, by the console formatter
PRIORITY_FIELDS: Final[tuple[str, ...]] = (
    "correlation_id",
    "method",
    "path",
    "parameter",
)

# Third-party loggers that are too chatty at INFO
NOISY_LOGGERS: Final[tuple[str, ...]] = ("python_multipart", "multipart")


def _escape(value: object) -> str:
    return str(value).replace("{", "{{").replace("}", "}}").replace("<", r"\<")


def _format_extra_field(key: str, value: object) -> str | None:
    """Format an extra field for display.

    Args:
        key: The field name.
        value: The field value.

    Returns:
        str | None: Formatted field or None if formatting fails.
    """
    try:
        str_value = str(value)

        settings = get_settings()
        if key in settings.log_config.sensitive_fields:
            str_value = REDACTED
        elif key == "correlation_id":
            str_value = str_value[:CORRELATION_ID_DISPLAY_LENGTH]
        elif len(str_value) > MAX_FIELD_VALUE_LENGTH:
            str_value = str_value[: MAX_FIELD_VALUE_LENGTH - 3] + "..."
    except (AttributeError, TypeError, ValueError) as e:
        logger.trace(f"Failed to format extra field {key}: {e}")
        return None
    else:
        return f"{_escape(key)}={_escape(str_value)}"


def _format_context_fields(extra: dict[str, Any]) -> list[str]:
    """Format all context fields from extra data.

    Args:
        extra: Extra fields from the log record.

    Returns:
        list[str]: List of formatted context parts, priority fields first.
    """
    ordered = [key for key in PRIORITY_FIELDS if key in extra]
    ordered += [key for key in extra if key not in PRIORITY_FIELDS]

    context_parts = []
    for key in ordered:
        value = extra[key]
        if key.startswith("_") or value is None:
            continue
        formatted = _format_extra_field(key, value)
        if formatted:
            context_parts.append(formatted)
    return context_parts


def format_console_with_context(record: dict[str, Any]) -> str:
    """Format log record for console with all context fields visible.

    Args:
        record: Loguru record to format.

    Returns:
        str: Loguru format string for this record.
    """
    try:
        timestamp = record["time"].strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
        parts = [
            f"<green>{timestamp}</green>",
            f"<level>{record['level'].name: <8}</level>",
            f"<cyan>{record['name']}:{record['function']}:{record['line']}</cyan>",
        ]

        context_parts = _format_context_fields(record.get("extra", {}))
        if context_parts:
            parts.append(" ".join(f"<dim>[{part}]</dim>" for part in context_parts))

        parts.append("{message}")

        line = " | ".join(parts)
        if record.get("exception"):
            line += "\n{exception}"
        return line + "\n"
    except (AttributeError, TypeError, ValueError, KeyError) as e:
        logger.trace(f"Failed to format log record: {e}")
        return DEFAULT_LOG_FORMAT + "\n"


def serialize_for_json(record: dict[str, Any]) -> str:
    """Format log record as one line of JSON.

    Args:
        record: Loguru record to format.

    Returns:
        str: JSON-formatted log entry with newline.
    """
    log_entry: dict[str, Any] = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "message": record["message"],
        "logger": record["name"],
        "function": record["function"],
        "line": record["line"],
    }

    sensitive = set(get_settings().log_config.sensitive_fields)
    for key, value in record.get("extra", {}).items():
        if key.startswith("_"):
            continue
        log_entry[key] = REDACTED if key in sensitive else value

    if exc := record.get("exception"):
        log_entry["exception"] = {
            "type": exc.type.__name__ if exc.type else None,
            "value": str(exc.value) if exc.value else None,
        }

    return orjson.dumps(log_entry, default=str).decode() + "\n"


class InterceptHandler(logging.Handler):
    """Intercept standard logging and redirect to Loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        """Forward log record to Loguru.

        Args:
            record: Standard library LogRecord to forward.
        """
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find the caller outside of the logging module
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def setup_logging(settings: SettingsProtocol) -> None:
    """Configure Loguru with the formatter selected in settings.

    Args:
        settings: Application settings containing log configuration.

    Note:
        This function ensures it's only called once using module state.
    """
    if _state.configured:
        return

    logger.remove()

    formatter_type = settings.log_config.log_formatter_type or "console"

    if formatter_type == "console":
        logger.add(
            sys.stdout,
            format=cast("Any", format_console_with_context),
            level=settings.log_config.log_level,
            enqueue=True,
            colorize=True,
            diagnose=settings.debug,
            backtrace=settings.debug,
        )
    else:

        def structured_sink(message: object) -> None:
            """Custom sink that formats and writes structured logs."""
            if hasattr(message, "record"):
                sys.stdout.write(serialize_for_json(message.record))
                sys.stdout.flush()

        logger.add(
            structured_sink,
            level=settings.log_config.log_level,
            enqueue=True,
            diagnose=False,
            backtrace=False,
        )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    for logger_name in ["uvicorn", "uvicorn.error", "uvicorn.access"]:
        uvicorn_logger = logging.getLogger(logger_name)
        uvicorn_logger.handlers = [InterceptHandler()]
        uvicorn_logger.propagate = False

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    logger.info(
        "Logging configured with {} formatter",
        formatter_type,
        log_level=settings.log_config.log_level,
    )

    _state.configured = True

