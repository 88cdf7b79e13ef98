"""JSON logging configuration for the AgriHaul WhatsApp bot.

Records carry structured fields in a `context` dict, passed either through
`extra={"context": {...}}` or, on a SenderLogger, as a `context=` keyword.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Optional

QUIET_LOGGERS = ("httpx", "httpcore", "twilio.http_client", "uvicorn.access")


class JSONFormatter(logging.Formatter):
    """One JSON object per line, timestamps in UTC."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = getattr(record, "context", None)
        if context:
            entry["context"] = context

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO") -> None:
    """Send JSON lines to stdout and quiet the chatty HTTP client loggers."""
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"agrihaul.{name}")


class SenderLogger(logging.LoggerAdapter):
    """Logger for one chat turn.

    Every record gets the sender id and the flow the turn started in. Fields
    given as `context=` win over those when the keys collide.
    """

    def __init__(self, logger: logging.Logger, sender_id: str, flow: Optional[Any] = None):
        fields: dict[str, Any] = {"sender_id": sender_id}
        if flow is not None:
            fields["flow"] = getattr(flow, "value", str(flow))
        super().__init__(logger, fields)

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        turn_fields = dict(self.extra)
        turn_fields.update(kwargs.pop("context", None) or {})
        extra = dict(kwargs.get("extra") or {})
        extra["context"] = turn_fields
        kwargs["extra"] = extra
        return msg, kwargs
