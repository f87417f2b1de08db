from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone

from promocode.core.config import settings
from promocode.core.request_context import current_context

_SENSITIVE_PATTERNS = [
    re.compile(r"(authorization\s*[:=]\s*bearer\s+)([^\s\"]+)", re.IGNORECASE),
    re.compile(r"(token\s*[:=]\s*)([^\s\",}]+)", re.IGNORECASE),
    re.compile(r"(password\s*[:=]\s*)([^\s\",}]+)", re.IGNORECASE),
    re.compile(r"(secret\s*[:=]\s*)([^\s\",}]+)", re.IGNORECASE),
]

# extra={...} keys copied into the JSON line when present
_EXTRA_FIELDS = (
    "endpoint",
    "method",
    "status_code",
    "duration_ms",
    "object_type",
    "object_id",
    "code",
    "updated_by",
    "cache_key",
)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        context = current_context()
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "request_id": getattr(record, "request_id", None) or context.request_id,
            "tenant_id": getattr(record, "tenant_id", None) or context.tenant_id,
            "user_id": getattr(record, "user_id", None) or context.user_id,
            "module": record.name,
            "message": self._mask(record.getMessage()),
        }
        for field in _EXTRA_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = str(value) if not isinstance(value, (int, float)) else value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)

    def _mask(self, value: str) -> str:
        masked = value
        for pattern in _SENSITIVE_PATTERNS:
            masked = pattern.sub(r"\1***", masked)
        return masked


def configure_logging(level: str | None = None) -> None:
    resolved = (level or settings.LOG_LEVEL).upper()

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(resolved)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter("%(message)s"))
    root_logger.addHandler(handler)

    for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(logger_name).setLevel(resolved)
