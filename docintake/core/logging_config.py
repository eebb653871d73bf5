"""Structured logging configuration.

Supports two modes via LOG_FORMAT env var:
- "json" (default for production): JSON-formatted log lines with batch_id
- "text" (for development): Human-readable log lines
"""

import logging
import sys

from pythonjsonlogger.json import JsonFormatter

from docintake.core.context import get_batch_id

TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(batch_id)s] %(message)s"


class BatchIDFilter(logging.Filter):
    """Inject batch_id into every log record."""

    def filter(self, record):
        record.batch_id = get_batch_id()
        return True


class PypdfRepairFilter(logging.Filter):
    """Drop pypdf's per-object repair warnings.

    A single malformed PDF can emit hundreds of "Ignoring wrong pointing
    object" lines while pypdf recovers; they say nothing about whether
    extraction succeeded.
    """

    def filter(self, record):
        msg = record.getMessage() if hasattr(record, "getMessage") else str(record.msg)
        if record.name.startswith("pypdf") and "wrong pointing object" in msg:
            return False
        return True


def configure_logging(log_format: str = "json", log_level: str = "INFO", stream=None):
    """Configure root logger with the specified format.

    Args:
        log_format: "json" or "text"
        log_level: Python log level name
        stream: Output stream for log lines (default: stdout)
    """
    root = logging.getLogger()
    root.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.addFilter(BatchIDFilter())
    handler.addFilter(PypdfRepairFilter())

    if log_format == "json":
        formatter = JsonFormatter(
            fmt="%(asctime)s %(name)s %(levelname)s %(message)s %(batch_id)s",
            rename_fields={
                "levelname": "level",
                "name": "logger",
                "asctime": "timestamp",
            },
        )
    else:
        formatter = logging.Formatter(TEXT_FORMAT)

    handler.setFormatter(formatter)
    root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    # pypdf logs recoverable structure problems at WARNING
    logging.getLogger("pypdf").setLevel(logging.ERROR)
