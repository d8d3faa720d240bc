"""structlog + stdlib logging for the proxy process.

Events are rendered on the calling thread by the ``QueueHandler``'s
formatter (so ``structlog.contextvars`` bound per request are still
visible) and written by a ``QueueListener`` thread, so the event loop never
blocks on stdout/stderr. uvicorn's own loggers propagate into the same
pipeline; request lines come from the app's middleware, not uvicorn's
access log.
"""

from __future__ import annotations

import atexit
import logging
import queue
import sys
from logging.handlers import QueueHandler, QueueListener
from typing import Optional

import structlog

from moviedeck.infrastructure.config.schema import AppConfig

log = structlog.get_logger(__name__)

# Loggers that must flow through the root handler instead of their own.
_PROPAGATED_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")

# Per-request upstream chatter; the proxy logs its own fetch events.
_QUIET_LOGGERS = {"httpx": logging.WARNING, "httpcore": logging.WARNING}

_listener: Optional[QueueListener] = None


def build_formatter(config: AppConfig) -> structlog.stdlib.ProcessorFormatter:
    """Final renderer for structlog events and foreign (stdlib) records."""
    renderer: structlog.typing.Processor = (
        structlog.processors.JSONRenderer()
        if config.log_format == "json"
        else structlog.dev.ConsoleRenderer()
    )
    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
        ],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )


def _stream_handlers() -> tuple[logging.Handler, logging.Handler]:
    stdout = logging.StreamHandler(sys.stdout)
    stdout.addFilter(lambda record: record.levelno < logging.ERROR)
    stderr = logging.StreamHandler(sys.stderr)
    stderr.setLevel(logging.ERROR)
    return stdout, stderr


def shutdown_logging() -> None:
    """Flush and stop the writer thread. Safe to call more than once."""
    global _listener
    if _listener is not None:
        listener, _listener = _listener, None
        listener.stop()


def configure_logging(config: AppConfig) -> None:
    """Install the logging pipeline for *config*. Re-running replaces it."""
    global _listener

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    shutdown_logging()

    records: queue.SimpleQueue[logging.LogRecord] = queue.SimpleQueue()
    queue_handler = QueueHandler(records)
    # QueueHandler.prepare() formats; listener handlers print the result as is.
    queue_handler.setFormatter(build_formatter(config))

    root = logging.getLogger()
    root.handlers[:] = [queue_handler]
    root.setLevel(config.log_level)

    for name in _PROPAGATED_LOGGERS:
        logger = logging.getLogger(name)
        logger.handlers.clear()
        logger.propagate = True
        logger.setLevel(config.log_level)
    for name, level in _QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)

    _listener = QueueListener(records, *_stream_handlers(), respect_handler_level=True)
    _listener.start()
    atexit.register(shutdown_logging)

    log.info(
        "logging_configured", log_format=config.log_format, log_level=config.log_level
    )
