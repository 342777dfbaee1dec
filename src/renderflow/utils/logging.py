"""Structured logging for renderflow, built on structlog.

Every log event emitted while an edit is being applied carries the project
and request it belongs to, so interleaved edits on different projects can
be told apart. Output is either colored console text (development) or one
JSON object per line (production).
"""

import logging
import sys
from collections.abc import Iterator, MutableMapping
from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import Any, cast

import structlog
from structlog.types import Processor

from renderflow.config import settings

LOG_FORMATS = ("console", "json")

# Correlation fields, in the order they are added to events
_CORRELATION_VARS: dict[str, ContextVar[str | None]] = {
    "project_id": ContextVar("project_id", default=None),
    "request_id": ContextVar("request_id", default=None),
    "node_id": ContextVar("node_id", default=None),
}


def set_correlation_context(
    project_id: str | None = None,
    request_id: str | None = None,
    node_id: str | None = None,
) -> None:
    """Set correlation IDs for the current async context.

    Arguments left as None keep their current value.

    Args:
        project_id: Project whose version graph is being edited
        request_id: Identifier of a single apply() call
        node_id: Render node produced or touched by the operation
    """
    values = {"project_id": project_id, "request_id": request_id, "node_id": node_id}
    for name, value in values.items():
        if value is not None:
            _CORRELATION_VARS[name].set(value)


def clear_correlation_context() -> None:
    """Clear all correlation context variables."""
    for var in _CORRELATION_VARS.values():
        var.set(None)


@contextmanager
def correlation_context(**ids: str) -> Iterator[None]:
    """Bind correlation IDs for the duration of a block.

    Previous values are restored on exit, including on error.

    Example:
        with correlation_context(project_id="p-1", request_id="9f2c"):
            logger.info("Applying edit")
    """
    unknown = set(ids) - set(_CORRELATION_VARS)
    if unknown:
        raise ValueError(f"Unknown correlation fields: {sorted(unknown)}")
    tokens: list[tuple[ContextVar[str | None], Token[str | None]]] = [
        (_CORRELATION_VARS[name], _CORRELATION_VARS[name].set(value))
        for name, value in ids.items()
    ]
    try:
        yield
    finally:
        for var, token in reversed(tokens):
            var.reset(token)


def _add_correlation_ids(
    logger: logging.Logger,
    method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Structlog processor adding whichever correlation IDs are set."""
    _ = logger, method_name
    for name, var in _CORRELATION_VARS.items():
        value = var.get()
        if value is not None:
            event_dict[name] = value
    return event_dict


def _renderer(log_format: str) -> list[Processor]:
    if log_format == "json":
        return [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer(colors=True)]


def configure_logging(
    level: str | None = None,
    log_format: str | None = None,
) -> None:
    """Configure structlog and the stdlib root logger.

    Safe to call more than once; each call replaces the previous setup.

    Args:
        level: Log level name. Defaults to settings.LOG_LEVEL.
        log_format: "console" or "json". Defaults to settings.LOG_FORMAT.

    Raises:
        ValueError: If the format is not one of LOG_FORMATS.
    """
    level = (level or settings.LOG_LEVEL).upper()
    log_format = log_format or settings.LOG_FORMAT
    if log_format not in LOG_FORMATS:
        raise ValueError(f"log_format must be one of {LOG_FORMATS}, got {log_format!r}")

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        _add_correlation_ids,
        *_renderer(log_format),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level),
        force=True,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger bound to ``name``."""
    return cast(structlog.stdlib.BoundLogger, structlog.get_logger(name))
