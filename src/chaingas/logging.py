"""Structured logging for the gas tracker, built on structlog over stdlib logging.

Every fee poller and the price oracle runs in its own asyncio task. Tasks
copy the context they were created in, so a value bound with
bind_task_context() inside a task tags that task's log lines only.
"""

import logging
import os

import structlog

# Libraries that log each HTTP round-trip; at DEBUG they drown the fee stream
QUIET_LOGGERS = ("web3", "urllib3", "aiohttp.access")


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def setup_logging(log_level: str = "INFO", log_format: str | None = None) -> None:
    """Route structlog and stdlib records through one rendering pipeline.

    Args:
        log_level: Root level name, e.g. "DEBUG". Unknown names mean INFO.
        log_format: "json" for machine-readable lines, anything else for
            the console renderer. Defaults to the LOG_FORMAT env var.
    """
    if log_format is None:
        log_format = os.environ.get("LOG_FORMAT", "console")

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_format.lower()),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_task_context(**values: object) -> None:
    """Attach key/value context to every log line of the current task."""
    structlog.contextvars.bind_contextvars(**values)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Return a bound structlog logger with the given name."""
    return structlog.get_logger(name)
