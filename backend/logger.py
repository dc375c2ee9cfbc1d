from __future__ import annotations

import json
import logging
from typing import Any, Final


logger = logging.getLogger("negotiator")

_REDACTED_KEYS: Final[frozenset[str]] = frozenset(
    {"text", "content", "client_messages", "freelancer_messages"},
)


def _sanitize_value(key: str, value: Any) -> Any:
    # Conversation text never reaches the logs, only its size.
    if key.lower() in _REDACTED_KEYS:
        text = str(value or "")
        return {"redacted": True, "length": len(text)}
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, dict):
        return {str(k): _sanitize_value(str(k), v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_sanitize_value(key, item) for item in value]
    return str(value)


def log_event(component: str, event: str, thread_id: str = "", **kwargs: Any) -> None:
    """Write one structured JSON log line at INFO level."""
    payload = {
        "component": component or "app",
        "event": event or "unknown",
        "thread_id": thread_id or "",
    }
    payload.update({str(k): _sanitize_value(str(k), v) for k, v in kwargs.items()})
    logger.info(json.dumps(payload, ensure_ascii=False, default=str))
