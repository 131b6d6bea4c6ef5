"""structlog + stdlib logging setup for the CLI and batch runs.

Engine modules log through ``structlog.get_logger()``; SQLAlchemy and
asyncio log through stdlib.  Both go to one handler on stderr so the
JSON summary a CLI command prints on stdout stays machine-readable.
"""

import logging
import sys
from typing import TextIO

import structlog

# Chatty at INFO; only let them through when debugging
_QUIET_LOGGERS = ("sqlalchemy.engine", "aiosqlite", "asyncio")


def configure_logging(
    json_output: bool = True,
    log_level: str = "INFO",
    stream: TextIO | None = None,
) -> None:
    """Route structlog and stdlib records through one formatter.

    Args:
        json_output: JSON lines with structured tracebacks when ``True``;
            structlog's console renderer otherwise.
        log_level: Root log level name.
        stream: Destination, ``sys.stderr`` by default.
    """
    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_output:
        # Batch failures log exc_info; keep the traceback queryable
        renderers: list[structlog.types.Processor] = [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    else:
        renderers = [structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=shared_processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *renderers],
    )

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper()))

    quiet_level = logging.NOTSET if root.level <= logging.DEBUG else logging.WARNING
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(quiet_level)
