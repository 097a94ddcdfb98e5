"""Structured logging setup for depgraph.

Every depgraph module logs through ``structlog.get_logger(__name__)`` with
snake_case event names (``node_added``, ``dependency_cycle_predicted``, ...).
Nothing is emitted through the standard library until configure_logging()
routes those events there.

Example:
    >>> from depgraph.log_config import bind_context, configure_logging
    >>> configure_logging(level="DEBUG", json_logs=False)
    >>> bind_context(graph="modules")  # tags every graph event that follows
"""

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from depgraph.config import GraphConfig


def _renderer(json_logs: bool) -> Any:
    if json_logs:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=True,
        exception_formatter=structlog.dev.plain_traceback,
    )


def configure_logging(level: str = "INFO", json_logs: bool = True) -> None:
    """Route depgraph's structlog events through standard library logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Graph mutations log at DEBUG.
        json_logs: If True, render JSON lines; otherwise colored console output

    Raises:
        ValueError: If an invalid log level is provided
    """
    numeric_level = logging.getLevelNamesMapping().get(level.upper())
    if not isinstance(numeric_level, int):
        msg = f"Invalid log level: {level}"
        raise ValueError(msg)

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=numeric_level)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.CallsiteParameterAdder(
                parameters=[
                    structlog.processors.CallsiteParameter.MODULE,
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                ],
            ),
            structlog.processors.format_exc_info,
            _renderer(json_logs),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def configure_from_config(config: "GraphConfig") -> None:
    """Configure logging from the logging fields of a GraphConfig."""
    configure_logging(level=config.logging_level, json_logs=config.json_logs)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Attach context (graph name, build run, ...) to every later event.

    Example:
        >>> bind_context(graph="modules", run_id="build-42")
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
