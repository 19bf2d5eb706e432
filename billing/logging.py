"""JSON log lines tagged with request, admin and trace context."""
import json
import logging
import os
from typing import Any, Dict, Tuple

from flask import g, has_app_context
from opentelemetry.trace import get_current_span

SENSITIVE_KEYS = frozenset({
    "password",
    "token",
    "access_token",
    "refresh_token",
    "authorization",
    "secret",
})
REDACTED = "[REDACTED]"
UNSET = "n/a"


def _trace_ids() -> Tuple[str, str]:
    ctx = get_current_span().get_span_context()
    if not ctx.is_valid:
        return UNSET, UNSET
    return format(ctx.trace_id, "032x"), format(ctx.span_id, "016x")


class ContextFilter(logging.Filter):
    """Stamp every record with the request id, admin user and OTel ids."""

    def filter(self, record: logging.LogRecord) -> bool:
        if has_app_context():
            record.request_id = getattr(g, "request_id", None) or UNSET
            record.user = getattr(g, "username", None) or UNSET
        else:
            record.request_id = UNSET
            record.user = UNSET
        record.trace_id, record.span_id = _trace_ids()
        return True


def mask(data: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of ``data`` with credential values replaced, nested dicts included."""
    out = {}
    for key, value in data.items():
        if str(key).lower() in SENSITIVE_KEYS:
            out[key] = REDACTED
        elif isinstance(value, dict):
            out[key] = mask(value)
        else:
            out[key] = value
    return out


class MaskingFilter(logging.Filter):
    """Redact credentials from dict-shaped log messages.

    DEBUG records are left alone outside production.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        in_production = os.getenv("APP_ENV", "development").lower() == "production"
        if record.levelno <= logging.DEBUG and not in_production:
            return True
        if isinstance(record.msg, dict):
            record.msg = mask(record.msg)
        if isinstance(record.args, dict):
            record.args = mask(record.args)
        return True


class JsonFormatter(logging.Formatter):
    CONTEXT_FIELDS = ("request_id", "user", "trace_id", "span_id")

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        line = {
            "time": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "name": record.name,
        }
        for field in self.CONTEXT_FIELDS:
            line[field] = getattr(record, field, UNSET)
        if isinstance(record.msg, dict):
            line.update(record.msg)
        else:
            line["message"] = record.getMessage()
        if record.exc_info:
            line["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(line, default=str)


def _level_for(app) -> int:
    name = os.getenv("LOG_LEVEL")
    if name:
        return getattr(logging, name.upper(), logging.INFO)
    return logging.DEBUG if app.config.get("DEBUG") else logging.INFO


def configure_logging(app) -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter(datefmt="%Y-%m-%dT%H:%M:%S%z"))
    handler.addFilter(ContextFilter())
    handler.addFilter(MaskingFilter())
    level = _level_for(app)

    app.logger.handlers.clear()
    app.logger.addHandler(handler)
    app.logger.setLevel(level)

    root = logging.getLogger()
    if not any(isinstance(h, logging.StreamHandler) for h in root.handlers):
        root.addHandler(handler)
    root.setLevel(level)

    werkzeug_log = logging.getLogger("werkzeug")
    werkzeug_log.handlers.clear()
    werkzeug_log.addHandler(handler)
    werkzeug_log.setLevel(level)
