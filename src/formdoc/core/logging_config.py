"""Log output for formdoc.

Library modules log through ``logging.getLogger(__name__)`` and never touch
handlers.  Entry points (the CLI) call :func:`setup_logging` once; it routes
every stdlib record through structlog so builder and renderer messages come
out in one format: readable colored lines in a terminal, one JSON object per
line when piped into a log collector.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from formdoc.core.config import ObservabilityConfig


def _final_renderer(stream: Any) -> Any:
    if stream.isatty():
        return structlog.dev.ConsoleRenderer()
    return structlog.processors.JSONRenderer()


def setup_logging(config: ObservabilityConfig) -> None:
    """Install a single structlog-formatted stderr handler on the root logger.

    Calling it again replaces the handler, so the level can be changed
    (``--verbose``) without duplicating output.
    """
    level = getattr(logging, config.log_level.upper(), logging.INFO)

    enrich: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    structlog.configure(
        processors=[*enrich, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            # stdlib records get the same fields as structlog events
            foreign_pre_chain=enrich,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _final_renderer(sys.stderr),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)
    logging.getLogger("formdoc").setLevel(level)
