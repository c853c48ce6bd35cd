"""
structlog setup for the journey planner.

Planner modules log through ``structlog.get_logger(__name__)``. After
configure_logging() those events and anything written through the standard
``logging`` module share one stdout handler, one processor chain and one
renderer. Events emitted while a span is active carry its trace and span ids.
"""

import logging
import sys
from collections.abc import MutableMapping
from typing import Any

import structlog
from opentelemetry import trace

from journey_planner.core.config import settings

# Raised to WARNING; their INFO output is per-operation chatter
QUIET_LOGGERS = ("aiocache", "opentelemetry.exporter.otlp.proto.http")


def add_trace_ids(
    logger: logging.Logger, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Stamp the active span's ``trace_id`` and ``span_id`` onto the event."""
    context = trace.get_current_span().get_span_context()
    if context.is_valid:
        event_dict["trace_id"] = trace.format_trace_id(context.trace_id)
        event_dict["span_id"] = trace.format_span_id(context.span_id)
    return event_dict


def _pre_chain() -> list[structlog.types.Processor]:
    """Processors applied to structlog and stdlib events alike, before rendering."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        add_trace_ids,
    ]


def _renderer_for(level: str) -> structlog.types.Processor:
    # JSON lines when debugging, readable console output otherwise
    if level == "DEBUG":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=True)


def configure_logging(*, log_level: str | None = None) -> None:
    """
    Route structlog and stdlib logging through a single stdout handler.

    Calling it again replaces the previous handler, so the level and renderer
    can be changed at runtime.

    Args:
        log_level: Level name in any case. Defaults to settings.LOG_LEVEL.
    """
    level = (log_level or settings.LOG_LEVEL).upper()
    pre_chain = _pre_chain()

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, _renderer_for(level)],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
