"""structlog setup for writeguard.

All output goes to stderr so stdout stays reserved for command results.
Library modules keep using ``logging.getLogger(__name__)``; their records
run through the same structlog chain as native structlog loggers, so a
rejected write logs the same way in both worlds.

Inside :func:`write_context` every line also carries the type and
operation of the write being processed::

    [warning] post_validation.silent_reject  write_type=orders write_op=update
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager

import structlog

# Loggers that stay at WARNING even with --verbose.
QUIET_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "pluggy")


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _renderer(log_json: bool) -> structlog.types.Processor:
    if log_json:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(*, verbose: bool = False, log_json: bool = False) -> None:
    """Route structlog and stdlib logging through one stderr handler.

    Args:
        verbose: ``writeguard.*`` loggers emit DEBUG; otherwise WARNING+.
        log_json: One JSON object per line instead of console output.
    """
    shared = _shared_processors()
    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_json),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(logging.WARNING)

    logging.getLogger("writeguard").setLevel(logging.DEBUG if verbose else logging.WARNING)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


@contextmanager
def write_context(type_name: str, operation: str) -> Iterator[None]:
    """Bind *type_name* and *operation* to every log line inside the block."""
    with structlog.contextvars.bound_contextvars(write_type=type_name, write_op=operation):
        yield
