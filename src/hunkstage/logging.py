"""Structlog configuration used by the library and the CLI."""

from __future__ import annotations

import logging
import logging.config
import sys

import structlog

from hunkstage.config.schema import LoggingConfig


def configure_logging(config: LoggingConfig | None = None) -> None:
    """Configure structlog + stdlib logging from the [logging] config section.

    Output goes to stderr so JSON written to stdout stays parseable.
    """
    config = config or LoggingConfig()
    log_level = getattr(logging, config.level.upper(), logging.WARNING)

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    if config.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=shared_processors
        + [
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=shared_processors,
    )

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"default": {"()": lambda: formatter}},
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "stream": sys.stderr,
                }
            },
            "loggers": {
                "hunkstage": {"handlers": ["default"], "level": log_level, "propagate": False},
            },
        }
    )


def configure_library_default() -> None:
    """Quiet defaults for library use before :func:`configure_logging` runs.

    Events below WARNING are dropped and the rest go through the stdlib
    ``hunkstage`` logger, which carries a NullHandler. A host application
    that already configured structlog is left alone.
    """
    logging.getLogger("hunkstage").addHandler(logging.NullHandler())
    if structlog.is_configured():
        return
    structlog.configure(
        processors=[
            structlog.stdlib.add_log_level,
            structlog.processors.KeyValueRenderer(key_order=["event"]),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.WARNING),
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )
