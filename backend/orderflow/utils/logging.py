"""structlog configuration for orderflow.

Every engine event names the order it concerns. Guard and edit-session
code runs under ``bind_order_id``, and ``_order_scope`` copies that id
onto each entry, so one order's notifications, drops and pushes can be
followed even when several orders are being reconciled at once. An
explicit ``order_id=`` keyword on a log call always wins.

``setup_logging`` routes structlog through the stdlib root logger on
stderr, rendered as JSON lines or as coloured console output.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

import structlog

_current_order: ContextVar[str] = ContextVar("orderflow_order_id", default="")


def set_order_id(order_id: str) -> None:
    """Attach ``order_id`` to the current context until changed."""
    _current_order.set(order_id)


def get_order_id() -> str:
    """Order id bound to the current context, "" when none."""
    return _current_order.get()


@contextmanager
def bind_order_id(order_id: str) -> Iterator[None]:
    """Attach ``order_id`` to log entries emitted inside the block.

    Tasks created inside the block inherit the id, which is how a
    debounced push keeps logging under the order that scheduled it.
    """
    token = _current_order.set(order_id)
    try:
        yield
    finally:
        _current_order.reset(token)


def _order_scope(
    logger: structlog.types.WrappedLogger,
    method_name: str,
    event_dict: structlog.types.EventDict,
) -> structlog.types.EventDict:
    order_id = _current_order.get()
    if order_id and "order_id" not in event_dict:
        event_dict["order_id"] = order_id
    return event_dict


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def setup_logging(level: str = "INFO", log_format: str = "console") -> None:
    """Configure structlog and the root logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: "json" or "console".
    """
    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        _order_scope,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_format),
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level.upper()))


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Named structlog logger, for modules that want one."""
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger
