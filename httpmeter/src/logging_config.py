"""
JSON-lines logging for the meter daemon.

Every record becomes one JSON object per line so the container log driver
can index it. Records emitted on behalf of a meter carry the metered
appliance as ``appliance_id`` (passed via ``extra=`` or a
``LoggerAdapter``); daemon-level records omit the field.

Keys, in order: ``timestamp``, ``level``, ``logger``, ``thread``,
``appliance_id`` (optional), ``message``, ``exception`` (optional).

CHANGELOG:
- 2026-10-18: Initial creation (STORY-013)

TODO:
- None
"""

import json
import logging
from datetime import UTC, datetime

# Record attribute set through ``extra`` by meter and pipeline logs.
APPLIANCE_ID_ATTR = "appliance_id"


class JSONFormatter(logging.Formatter):
    """Render a log record as a single-line JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
        }
        appliance_id = record.__dict__.get(APPLIANCE_ID_ATTR)
        if appliance_id:
            entry[APPLIANCE_ID_ATTR] = appliance_id
        entry["message"] = record.getMessage()
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def appliance_logger(
    logger: logging.Logger, appliance_id: str
) -> logging.LoggerAdapter:
    """Return an adapter tagging every record with *appliance_id*."""
    return logging.LoggerAdapter(logger, {APPLIANCE_ID_ATTR: appliance_id})


def setup_logging(level: int | str = logging.INFO) -> None:
    """Route all records through one stderr handler using JSONFormatter.

    Handlers installed earlier (by a previous call or by the runtime) are
    removed first so records are not printed twice.
    """
    root = logging.getLogger()
    root.setLevel(level)
    for existing in list(root.handlers):
        root.removeHandler(existing)

    stream = logging.StreamHandler()
    stream.setFormatter(JSONFormatter())
    root.addHandler(stream)
