# src/nodeflow/core/logging.py
"""Structured logging for graph runs.

Log lines go to stderr so stdout stays free for command output such as
the JSON run result. structlog and stdlib loggers share one processor
chain through ProcessorFormatter.

The engine binds two context variables while it works:

- ``run_entries``: entry node ids, bound by GraphRunner for a whole run
- ``node_id``: the node currently computing, bound by Node.get_result

JSON output keeps them as separate fields. Console output folds them into
a single ``scope`` field (``run:start/node:pick``) so a line shows where in
the graph it was emitted.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.stdlib import ProcessorFormatter

from nodeflow.core.config import LoggingSettings

# Third-party loggers that are noise at DEBUG level.
_NOISY_LOGGERS: tuple[str, ...] = (
    "asyncio",
    "dynaconf",
    "pluggy",
    "httpx",
    "httpcore",
)


def _drop_formatter_fields(
    logger: logging.Logger | None,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    # ProcessorFormatter always adds both
    del event_dict["_record"]
    del event_dict["_from_structlog"]
    return event_dict


def scope_graph_context(
    logger: logging.Logger | None,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Fold ``run_entries`` and ``node_id`` into one ``scope`` field.

    Events emitted outside a run and outside any node pass through
    unchanged.
    """
    entries = event_dict.pop("run_entries", None)
    node_id = event_dict.pop("node_id", None)
    parts: list[str] = []
    if entries:
        parts.append("run:" + ",".join(str(entry) for entry in entries))
    if node_id is not None:
        parts.append(f"node:{node_id}")
    if parts:
        event_dict["scope"] = "/".join(parts)
    return event_dict


def configure_logging(settings: LoggingSettings | None = None, *, verbose: bool = False) -> None:
    """Route structlog and stdlib logging through one stderr handler.

    Args:
        settings: Level and output format; defaults to LoggingSettings()
        verbose: Force DEBUG regardless of ``settings.level``
    """
    settings = settings if settings is not None else LoggingSettings()
    log_level = logging.DEBUG if verbose else getattr(logging, settings.level)

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
    ]

    if settings.json_output:
        final_processors: list[Any] = [
            _drop_formatter_fields,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        final_processors = [
            _drop_formatter_fields,
            scope_graph_context,
            structlog.dev.ConsoleRenderer(colors=False),
        ]

    structlog.configure(
        processors=[*shared_processors, ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Caching off so the CLI can reconfigure once settings are loaded
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(ProcessorFormatter(processors=final_processors, foreign_pre_chain=shared_processors))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(log_level)

    noisy_level = max(log_level, logging.WARNING)
    for logger_name in _NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(noisy_level)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Bound structlog logger for ``name`` (typically __name__)."""
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger
