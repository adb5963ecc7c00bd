"""Structured logging configuration using structlog."""

import logging
import sys

import structlog


def configure_logging(verbose: bool = False) -> None:
    """Configure structlog for JSON output.

    Per-event and per-connection messages are logged at debug level, so
    they only appear when verbose logging is enabled.

    Args:
        verbose: Enable debug-level logging when True.
    """
    level = logging.DEBUG if verbose else logging.INFO

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=level,
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    for name in ["uvicorn", "uvicorn.error", "uvicorn.access", "watchdog"]:
        logging.getLogger(name).handlers = []
        logging.getLogger(name).propagate = True

    # watchdog's emitters are very chatty at debug level
    logging.getLogger("watchdog").setLevel(logging.INFO)
