"""structlog setup for command line runs.

Mining output (the report log and summary) goes to stdout; everything logged
through structlog or the standard library ends up on stderr, rendered by the
same processor chain so GitPython's own log records look like ours.
"""

import logging
import sys
from typing import Any, TextIO

import structlog

LOG_LEVELS = ("debug", "info", "warning", "error", "critical")

# GitPython logs every spawned git command at DEBUG.
NOISY_LOGGERS = ("git.cmd", "git.repo", "git.util")


def parse_log_level(log_level: str) -> int:
    """Map a level name to its numeric value.

    Raises:
        ValueError: If the name is not one of LOG_LEVELS.
    """
    name = log_level.strip().lower()
    if name not in LOG_LEVELS:
        raise ValueError(
            f"Unknown log level {log_level!r}, expected one of {LOG_LEVELS}"
        )
    return logging.getLevelNamesMapping()[name.upper()]


def _shared_processors() -> list[Any]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]


def configure_logging(
    log_level: str = "info",
    log_format: str = "console",
    stream: TextIO | None = None,
) -> None:
    """Route structlog and stdlib logging to ``stream`` (stderr by default).

    Args:
        log_level: One of LOG_LEVELS, case-insensitive
        log_format: "json" for JSON lines, "console" for human-readable output
        stream: Destination of the rendered log lines
    """
    level = parse_log_level(log_level)
    stream = stream or sys.stderr

    renderers: list[Any]
    if log_format == "json":
        renderers = [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        renderers = [structlog.dev.ConsoleRenderer(colors=stream.isatty())]

    handler = logging.StreamHandler(stream)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_shared_processors(),
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                *renderers,
            ],
        )
    )

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_shared_processors(),
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
