"""structlog configuration for cfgset.

Two output modes, both on stderr so stdout stays reserved for results:
- Human (default): console renderer, colored when stderr is a TTY
- JSON (--log-json): one JSON object per line, tracebacks as dicts

Services tag their log lines with :func:`bind_operation` so every event
emitted while a setter is being created carries the operation and name.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog


def configure_logging(
    *,
    verbose: bool = False,
    log_json: bool = False,
) -> None:
    """Route stdlib and structlog output through one structlog formatter.

    Args:
        verbose: Enable DEBUG-level output for ``cfgset`` loggers.
            When False, only WARNING and above.
        log_json: Use the JSON renderer instead of the console renderer.
    """
    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    final: list[structlog.types.Processor] = [
        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
    ]
    if log_json:
        final += [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    else:
        final.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(foreign_pre_chain=pre_chain, processors=final)
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.WARNING)

    logging.getLogger("cfgset").setLevel(logging.DEBUG if verbose else logging.WARNING)


def bind_operation(op: str, **fields: Any) -> None:
    """Replace the structlog context with *op* and *fields* for this run."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(op=op, **fields)
