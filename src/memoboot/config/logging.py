"""structlog configuration for memoboot.

Logs go to stderr so stdout stays clean for ``--json`` results, as
colored console lines or, with ``--log-json``, one JSON object per line.

Every event emitted during a setup run carries the run's context
(``run_id``, and ``backend`` once chosen); see :func:`run_context`.
Database passwords never reach the log: connection URLs and
``*PASSWORD=`` arguments are masked before rendering.
"""

from __future__ import annotations

import logging
import re
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog

_URL_PASSWORD = re.compile(r"(\w[\w+.-]*://[^:/@\s]+:)[^@\s]+@")
_ENV_PASSWORD = re.compile(r"(PASSWORD=)\S+")


def _mask(text: str) -> str:
    return _ENV_PASSWORD.sub(r"\1***", _URL_PASSWORD.sub(r"\1***@", text))


def redact_secrets(
    _logger: Any, _method: str, event_dict: structlog.types.EventDict
) -> structlog.types.EventDict:
    """Mask credentials in every string value of the event."""
    for key, value in event_dict.items():
        if isinstance(value, str):
            event_dict[key] = _mask(value)
    return event_dict


@contextmanager
def run_context(**values: Any) -> Iterator[None]:
    """Tag every log event inside the block with *values*."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**values)
    try:
        yield
    finally:
        structlog.contextvars.clear_contextvars()


def bind_run_context(**values: Any) -> None:
    """Add *values* to the context of the run in progress."""
    structlog.contextvars.bind_contextvars(**values)


def configure_logging(
    *,
    verbose: bool = False,
    log_json: bool = False,
) -> None:
    """Route structlog and stdlib logging to stderr.

    Args:
        verbose: ``memoboot.*`` loggers emit DEBUG (child commands, probe
            attempts, child output).  Otherwise WARNING and above.
        log_json: JSON lines instead of console rendering.
    """
    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_secrets,
    ]

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    renderer: structlog.types.Processor
    if log_json:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers[:] = [handler]
    root_logger.setLevel(logging.WARNING)
    logging.getLogger("memoboot").setLevel(logging.DEBUG if verbose else logging.WARNING)
