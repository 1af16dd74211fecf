"""Structured logging: one JSON object per line on stdout.

Every line carries the request context that is active when it is emitted
(request id, principal, operation name), so the lines of one ``/graphql``
call can be grouped without threading ids through the call stack.
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Mapping

request_id_ctx_var: ContextVar[str | None] = ContextVar("request_id", default=None)
principal_ctx_var: ContextVar[str | None] = ContextVar("principal", default=None)
operation_ctx_var: ContextVar[str | None] = ContextVar("operation", default=None)

_CONTEXT_FIELDS = (
    ("request_id", request_id_ctx_var),
    ("principal", principal_ctx_var),
    ("operation", operation_ctx_var),
)


class JsonLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: dict[str, Any] = {
            "ts": stamp.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "event": record.getMessage(),
        }
        for name, var in _CONTEXT_FIELDS:
            value = var.get()
            if value:
                payload[name] = value
        fields = getattr(record, "extra_data", None)
        if isinstance(fields, Mapping):
            payload.update({key: value for key, value in fields.items() if value is not None})
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, separators=(",", ":"), default=str)


def log_event(logger: logging.Logger, event: str, level: int = logging.INFO, **fields: Any) -> None:
    """Emit ``event`` with ``fields`` merged into the JSON line; ``None`` values are dropped."""

    logger.log(level, event, extra={"extra_data": fields})


def setup_logging(level: str = "INFO") -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonLogFormatter())
    logging.root.handlers = [handler]
    logging.root.setLevel(level.upper())
    # RequestIdMiddleware already writes one line per request.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
