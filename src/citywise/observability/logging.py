"""Request-scoped JSON logging for the CityWise API and pipelines.

Each API request gets a correlation_id (from X-Request-ID or a fresh UUID),
and every line logged while serving it carries that ID, whether it comes
from the resolver, the assessor and Regrid clients, or the checklist
transaction. Domain context (jurisdiction, project type, APN, pipeline step,
timing) rides along through `extra=`.
"""

import json
import logging
from contextvars import ContextVar
from datetime import datetime, timezone

from citywise.config import settings

# Set per request by CorrelationIDMiddleware; visible across awaits
correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")

# Keys lifted from logger.info("msg", extra={...}) onto the JSON line
EXTRA_FIELDS = ("jurisdiction", "project_type", "apn", "step", "duration_ms")

TEXT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# Chatty at INFO: one line per HTTP call, per SQL statement, per trace export
_NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access", "sqlalchemy.engine", "mlflow")


def get_correlation_id() -> str:
    """Return the current request's correlation ID, or "" outside a request."""
    return correlation_id.get()


class JSONFormatter(logging.Formatter):
    """One JSON object per line: timestamp, level, logger, message, plus context."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        cid = correlation_id.get()
        if cid:
            entry["correlation_id"] = cid

        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)

        for key in EXTRA_FIELDS:
            val = getattr(record, key, None)
            if val is not None:
                entry[key] = val

        return json.dumps(entry, default=str)


def setup_logging(json_format: bool | None = None, level: str | None = None) -> None:
    """Install a single stream handler on the root logger.

    Args:
        json_format: JSON lines for deployed API, plain text for a terminal.
            Defaults to settings.log_json.
        level: Level name; unknown names fall back to INFO. Defaults to
            settings.log_level.
    """
    if json_format is None:
        json_format = settings.log_json
    if level is None:
        level = settings.log_level

    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    root.handlers.clear()

    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter() if json_format else logging.Formatter(TEXT_FORMAT))
    root.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
