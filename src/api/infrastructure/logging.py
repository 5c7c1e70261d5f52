"""Structlog configuration for the application.

Colored console output for development, JSON lines for production. Either
way, credential material that ends up in an event dict is masked before
rendering.
"""

import logging
import os
import sys
from typing import Any

import structlog

# Event keys whose values must never reach the log output
SENSITIVE_KEYS = frozenset(
    {
        "access_token",
        "authorization",
        "password",
        "refresh_token",
        "secret_key",
        "token",
    }
)

REDACTED = "[REDACTED]"


def redact_sensitive_fields(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Structlog processor replacing credential values with a marker."""
    for key in event_dict.keys() & SENSITIVE_KEYS:
        if event_dict[key] is not None:
            event_dict[key] = REDACTED
    return event_dict


def configure_logging(level: str = "INFO") -> None:
    """Configure structlog for the process.

    Uses colored console output when FORCE_COLOR is set or stdout is a TTY,
    otherwise JSON output.

    Args:
        level: Minimum level name to emit (e.g. "INFO", "DEBUG").

    Raises:
        ValueError: If ``level`` is not a standard level name.
    """
    force_color = os.environ.get("FORCE_COLOR", "").lower() in ("1", "true", "yes")
    use_colors = force_color or sys.stdout.isatty()

    min_level = logging.getLevelName(level.upper())
    if not isinstance(min_level, int):
        raise ValueError(f"Unknown log level: {level}")

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        redact_sensitive_fields,
        structlog.processors.StackInfoRenderer(),
    ]

    renderer: list[structlog.types.Processor]
    if use_colors:
        renderer = [structlog.dev.ConsoleRenderer(colors=True)]
    else:
        renderer = [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=[*shared_processors, *renderer],
        wrapper_class=structlog.make_filtering_bound_logger(min_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
