"""Structlog-based logging configuration for the Waiveo installer.

Log records are rendered either as tagged console lines ([INFO], [OK], [WARN],
[ERROR]) for an operator watching the install, or as JSON for unattended runs.
Records below ERROR go to stdout; errors go to stderr.
"""

import logging
import sys
from typing import Any

import click
import structlog

from waiveo_installer.config.models import LoggingConfig

LEVEL_TAGS = {
    "debug": ("[DEBUG]", "bright_black"),
    "info": ("[INFO]", "blue"),
    "warning": ("[WARN]", "yellow"),
    "error": ("[ERROR]", "red"),
    "critical": ("[ERROR]", "red"),
}
OK_TAG = ("[OK]", "green")


class TaggedConsoleRenderer:
    """Render an event as '<TAG> message key=value ...'.

    Events logged with status="ok" are tagged [OK] instead of their level tag.
    """

    def __init__(self, colors: bool = True) -> None:
        self.colors = colors

    def __call__(
        self, logger: Any, method_name: str, event_dict: dict[str, Any]
    ) -> str:
        level = event_dict.pop("level", method_name)
        event_dict.pop("timestamp", None)
        event = str(event_dict.pop("event", ""))
        if event_dict.pop("status", None) == "ok":
            tag, color = OK_TAG
        else:
            tag, color = LEVEL_TAGS.get(level, (f"[{level.upper()}]", None))
        if self.colors and color:
            tag = click.style(tag, fg=color)

        extras = " ".join(f"{key}={value}" for key, value in sorted(event_dict.items()))
        return f"{tag} {event} {extras}".rstrip()


class _BelowLevelFilter(logging.Filter):
    def __init__(self, level: int) -> None:
        super().__init__()
        self.level = level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno < self.level


def _configure_processors(config: LoggingConfig) -> list:
    """Configure structlog processors for the selected output format."""
    processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="ISO"),
    ]
    if config.json_logs:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(TaggedConsoleRenderer(colors=sys.stdout.isatty()))
    return processors


def _configure_handlers(log_level: int) -> None:
    """Send records below ERROR to stdout and the rest to stderr."""
    root_logger = logging.getLogger()

    # Clear existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    root_logger.setLevel(log_level)

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setLevel(log_level)
    stdout_handler.addFilter(_BelowLevelFilter(logging.ERROR))
    stdout_handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(stdout_handler)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(max(log_level, logging.ERROR))
    stderr_handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(stderr_handler)


def configure_structlog(config: LoggingConfig) -> None:
    """Configure structlog-based logging system.

    Args:
        config: The LoggingConfig instance containing logging settings.
    """
    log_level = getattr(logging, config.level.upper(), logging.INFO)
    if not isinstance(log_level, int):
        log_level = logging.INFO

    structlog.configure(
        processors=_configure_processors(config),
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )
    _configure_handlers(log_level)

