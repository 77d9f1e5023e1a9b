"""JSON logging for the front desk service.

Guest phone numbers appear in almost every log line, so context keys that
carry one are masked down to their last four digits before formatting.
"""

import json
import logging
import re
import sys
from datetime import datetime, timezone
from typing import Any

PHONE_KEYS = {"phone", "to", "sender", "admin_phone"}
NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


def mask_phone(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    digits = re.sub(r"\D", "", value)
    if len(digits) <= 4:
        return value
    return f"***{digits[-4:]}"


def _masked(context: dict) -> dict:
    return {key: mask_phone(value) if key in PHONE_KEYS else value for key, value in context.items()}


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }

        context = getattr(record, "context", None)
        if context:
            entry["context"] = _masked(context)

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO") -> None:
    """Route everything through one stdout handler emitting JSON lines."""
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for existing in root.handlers[:]:
        root.removeHandler(existing)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"frontdesk.{name}")


class BookingLoggerAdapter(logging.LoggerAdapter):
    """Carries the guest's phone and, once known, the booking id on every record.

    Per-call fields go in a ``context=`` keyword and are merged over the bound ones.
    """

    def bind(self, **fields: Any) -> None:
        self.extra = {**self.extra, **fields}

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        context = {**self.extra, **(kwargs.pop("context", None) or {})}
        if context:
            kwargs["extra"] = {**kwargs.get("extra", {}), "context": context}
        return msg, kwargs
