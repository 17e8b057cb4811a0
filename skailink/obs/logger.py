"""Structured JSON logging to stdout.

One JSON object per line, safe for production stdout collectors. Caller
identities are redacted before they are written.
"""

from typing import Any, Dict
from datetime import datetime, timezone
import json

from skailink.obs.context import request_id_var, user_id_var


def _redact_user(value: Any) -> Any:
    s = str(value) if value is not None else ""
    if not s:
        return s
    if "@" in s:
        local, _, domain = s.partition("@")
        return f"{local[:1]}***@{domain}"
    if len(s) <= 4:
        return "***"
    return f"***{s[-4:]}"


def log_event(event: str, **fields: Any) -> None:
    now = datetime.now(timezone.utc).isoformat()
    payload: Dict[str, Any] = {
        "ts": now,
        "level": fields.pop("level", "INFO"),
        "event": event,
        "request_id": request_id_var.get(),
    }
    if "user_id" not in fields:
        payload["user_id"] = _redact_user(user_id_var.get())

    for k, v in fields.items():
        if k == "user_id":
            payload["user_id"] = _redact_user(v)
        else:
            payload[k] = v

    try:
        print(json.dumps(payload, separators=(",", ":"), default=str))
    except Exception:
        # As a last resort, avoid crashing the app due to logging
        pass
