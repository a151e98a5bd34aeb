"""
Structured logging configuration for routeledger.

Provides JSON-formatted logs with trace_id support so every line emitted
while routing one event can be correlated by its event id.

Environment Variables:
    ROUTELEDGER_LOG_LEVEL: Log level (DEBUG, INFO, WARNING, ERROR) - default: INFO
    ROUTELEDGER_LOG_FORMAT: Log format (json, text) - default: json

Usage:
    from routeledger.logging_config import setup_logging, get_logger

    setup_logging()
    logger = get_logger(__name__, trace_id="evt-12345")
    logger.info("Routing event", extra={"source": "A"})
"""

import logging
import os
import sys
from typing import Optional

from pythonjsonlogger.json import JsonFormatter

LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


class TraceIDFilter(logging.Filter):
    """
    Logging filter that adds trace_id to all log records.

    Ensures all records have a trace_id field, even if not set via LoggerAdapter.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "trace_id"):
            record.trace_id = "N/A"  # type: ignore[attr-defined]
        return True


def setup_logging(level: Optional[str] = None, fmt: Optional[str] = None, stream=None) -> None:
    """
    Configure root logger with structured logging.

    Arguments override the environment:
    - ROUTELEDGER_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
    - ROUTELEDGER_LOG_FORMAT: json, text (default: json)
    """
    log_level = (level or os.getenv("ROUTELEDGER_LOG_LEVEL", "INFO")).upper()
    log_format = (fmt or os.getenv("ROUTELEDGER_LOG_FORMAT", "json")).lower()
    resolved = LEVELS.get(log_level, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(resolved)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(resolved)
    handler.addFilter(TraceIDFilter())

    if log_format == "json":
        formatter: logging.Formatter = JsonFormatter(
            "%(asctime)s %(name)s %(levelname)s %(message)s %(trace_id)s",
            rename_fields={
                "asctime": "timestamp",
                "name": "logger",
                "levelname": "level",
            },
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s [trace_id=%(trace_id)s]",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)


def get_logger(name: str, trace_id: Optional[str] = None) -> logging.LoggerAdapter:
    """
    Get a logger with optional trace_id for correlation.

    Args:
        name: Logger name (typically __name__)
        trace_id: Trace ID for correlating logs (typically the event id)

    Example:
        logger = get_logger(__name__, trace_id="evt-12345")
        logger.info("Path selected")
        # Output (JSON): {"timestamp": "...", "level": "INFO", "message": "Path selected", "trace_id": "evt-12345"}
    """
    logger = logging.getLogger(name)
    return logging.LoggerAdapter(logger, {"trace_id": trace_id or "N/A"})
