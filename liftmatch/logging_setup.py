"""Logging setup for the API entry point. The engines only use module loggers."""

import json
import logging
import sys

SERVICE_NAME = "liftmatch"

# Campos que los casos de uso pueden pasar con extra={...}
_CONTEXT_FIELDS = ("job_id", "offer_id", "request_id", "driver_id")


class JsonLineFormatter(logging.Formatter):
    """One JSON object per record; the traceback, if any, goes under "exception"."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service_name": SERVICE_NAME,
        }
        for name in _CONTEXT_FIELDS:
            if hasattr(record, name):
                entry[name] = getattr(record, name)
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_logging(level: str = "INFO", json_output: bool = False) -> None:
    """Replace the root handlers with a single stdout handler."""
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    if json_output:
        handler.setFormatter(JsonLineFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))

    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level.upper()))
