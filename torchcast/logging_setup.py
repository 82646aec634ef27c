"""structlog configuration, applied once at process start."""

import logging

import structlog


def configure_logging(level: str = "INFO", debug: bool = False) -> None:
    """Console output when debugging, JSON lines otherwise."""
    renderer = structlog.dev.ConsoleRenderer() if debug else structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName("DEBUG" if debug else level.upper())
        ),
        cache_logger_on_first_use=True,
    )
