"""Structured logging via structlog.

Configures structlog once at application startup. Modules in this package
log through `logging.getLogger(__name__)`; a `ProcessorFormatter` on the
root handler sends those records through the same processor chain, so
stdlib and structlog loggers render identically.

Renderer selection:
  debug=True   `ConsoleRenderer` with colours for local development.
  debug=False  `JSONRenderer` for machine-parseable logs in production.

ContextVar injection:
  The `request_id` set by `RequestContextMiddleware` is added to every log
  line written while a request is being handled.
"""

from __future__ import annotations

import logging
import sys

import structlog

from spmhost.core.middleware import get_request_id

_HANDLER_NAME = "spmhost"


def _inject_request_id(
    logger: logging.Logger,
    method: str,
    event_dict: dict,
) -> dict:
    """Structlog processor: add request_id from the ContextVar when set."""
    request_id = get_request_id()
    if request_id:
        event_dict["request_id"] = request_id
    return event_dict


def configure_structlog(debug: bool = True) -> None:
    """Configure structlog and the stdlib root logger.

    Call once from `create_app()` or the CLI. Calling again replaces the
    previous handler instead of adding a second one.
    """
    shared_processors: list = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        _inject_request_id,
        structlog.processors.StackInfoRenderer(),
    ]

    if debug:
        renderers: list = [structlog.dev.ConsoleRenderer()]
    else:
        renderers = [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=shared_processors
        + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *renderers,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    for existing in list(root.handlers):
        if existing.get_name() == _HANDLER_NAME:
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if debug else logging.INFO)
