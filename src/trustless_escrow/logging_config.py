"""Structured logging for the escrow ledger, built on structlog.

Development runs get a colored console renderer, every other environment
emits one JSON object per line. Context bound through structlog's
contextvars (the request id from the middleware, the calling account from
the X-Account-Id dependency) is merged into every entry logged while the
request is served.

Event names are dotted ``<component>.<what_happened>`` strings:

    logger = get_logger(__name__)
    logger.info("escrow.created", escrow_id=1, amount=1000)
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from typing import TextIO

SERVICE_NAME = "trustless-escrow"

# Libraries that log every statement or connection at INFO.
_QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "aiosqlite", "asyncio")


def _add_service(
    logger: logging.Logger, method_name: str, event_dict: structlog.types.EventDict
) -> structlog.types.EventDict:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def _resolve_level(log_level: str) -> int:
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level '{log_level}'")
    return level


def setup_logging(
    log_level: str = "DEBUG",
    json_logs: bool = False,
    stream: TextIO | None = None,
) -> None:
    """Route structlog and stdlib logging through one handler.

    Args:
        log_level: Level name for the root logger (DEBUG, INFO, ...).
        json_logs: Render JSON lines instead of the colored console format.
        stream: Where to write; stdout when omitted.
    """
    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        _add_service,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    renderer: structlog.types.Processor
    if json_logs:
        renderer = structlog.processors.JSONRenderer()
        pre_chain.append(structlog.processors.format_exc_info)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=stream is None)

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(_resolve_level(log_level))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_caller(account: str) -> None:
    """Attach the calling account to every entry logged for this request."""
    structlog.contextvars.bind_contextvars(caller=account)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
