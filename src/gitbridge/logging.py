"""Structured logging for gitbridge.

Every module obtains its logger through :func:`get_logger`; the hosting
process calls :func:`configure_logging` once. Two renderers are supported:

- Console output for local development (default)
- JSON lines for log shippers (``GITBRIDGE_LOG_FORMAT=json``)

Request-scoped fields (``tenant_id``, ``request_id``, ``command``) travel
through structlog contextvars so that the runner and parsers do not need to
thread them explicitly:

    from gitbridge.logging import get_logger, request_context

    log = get_logger(__name__)
    with request_context(tenant_id="acme", request_id="r-1", command="log"):
        log.info("git_log_completed", commit_count=12)
"""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog
from structlog.types import Processor

__all__ = [
    "get_logger",
    "configure_logging",
    "bind_context",
    "clear_context",
    "request_context",
]

#: Selects the renderer; ``json`` switches to JSON lines.
LOG_FORMAT_ENV_VAR = "GITBRIDGE_LOG_FORMAT"

#: Standard level name (``DEBUG``, ``INFO``...).
LOG_LEVEL_ENV_VAR = "GITBRIDGE_LOG_LEVEL"

DEFAULT_LOG_LEVEL = "INFO"


def _get_log_level() -> int:
    level_name = os.environ.get(LOG_LEVEL_ENV_VAR, DEFAULT_LOG_LEVEL).upper()
    return getattr(logging, level_name, logging.INFO)


def _is_json_output() -> bool:
    return os.environ.get(LOG_FORMAT_ENV_VAR, "").lower() == "json"


def _shared_processors() -> list[Processor]:
    """Processors applied to both structlog and foreign stdlib records."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(use_json: bool) -> Processor:
    if use_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=sys.stderr.isatty(),
        exception_formatter=structlog.dev.plain_traceback,
    )


def configure_logging(
    *,
    force_json: bool = False,
    level: int | None = None,
) -> None:
    """Configure structlog and the stdlib root logger.

    Safe to call more than once; each call replaces the previous handler.

    Args:
        force_json: Emit JSON regardless of ``GITBRIDGE_LOG_FORMAT``.
        level: Explicit log level. Defaults to ``GITBRIDGE_LOG_LEVEL`` or INFO.
    """
    use_json = force_json or _is_json_output()
    log_level = level if level is not None else _get_log_level()

    exception_processor: Processor = (
        structlog.processors.dict_tracebacks
        if use_json
        else structlog.processors.format_exc_info
    )

    structlog.configure(
        processors=[
            *_shared_processors(),
            exception_processor,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # stderr keeps stdout free for callers that pipe results
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(log_level)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(use_json),
            ],
            foreign_pre_chain=_shared_processors(),
        )
    )
    root_logger.addHandler(handler)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger, usually ``get_logger(__name__)``."""
    log: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return log


def bind_context(**context: Any) -> None:
    """Bind key-value pairs into every subsequent log event of this task."""
    structlog.contextvars.bind_contextvars(**context)


def clear_context() -> None:
    """Drop all contextvars-bound log fields."""
    structlog.contextvars.clear_contextvars()


@contextmanager
def request_context(**context: Any) -> Iterator[None]:
    """Bind *context* for the duration of a ``with`` block.

    Previously bound keys are restored on exit, so nested requests (for
    example a service call made while handling another) do not leak fields.
    """
    with structlog.contextvars.bound_contextvars(**context):
        yield
