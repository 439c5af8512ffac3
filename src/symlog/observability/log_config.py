"""
Logging setup driven by LoggingSettings.

Modules log through ``logging.getLogger(__name__)``; hosts call
``configure_logging()`` once at startup.
"""

import json
import logging
from datetime import datetime, timezone

from symlog.config import LoggingSettings, get_settings

TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


class JsonLineFormatter(logging.Formatter):
    """One JSON object per log line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def configure_logging(settings: LoggingSettings | None = None) -> None:
    """Install a single stream handler on the ``symlog`` logger."""
    settings = settings or get_settings().logging

    handler = logging.StreamHandler()
    if settings.log_format == "json":
        handler.setFormatter(JsonLineFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))

    root = logging.getLogger("symlog")
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(settings.log_level)
