"""ASGI middleware for request ids, caller identity, latency and logging."""

from typing import Callable, Any
import re
import time
import uuid

from fastapi import FastAPI

from skailink.obs.context import clear_context, request_id_var, user_id_var
from skailink.obs.logger import log_event
from skailink.obs.metrics import record_timing, inc_counter

USER_HEADER = b"x-user-id"

# Keep metric label cardinality bounded: /api/airports/DEL -> /api/airports/{code}
_ROUTE_PATTERNS = [
    (re.compile(r"^/api/airports/(?!search$)[^/]+$"), "/api/airports/{code}"),
]


def route_label(path: str) -> str:
    for pattern, label in _ROUTE_PATTERNS:
        if pattern.match(path):
            return label
    return path


class ObservabilityMiddleware:
    def __init__(self, app: FastAPI):
        self.app = app

    async def __call__(self, scope: dict, receive: Callable, send: Callable[[dict], Any]):
        if scope.get("type") != "http":
            return await self.app(scope, receive, send)

        req_id = str(uuid.uuid4())
        request_id_var.set(req_id)
        headers = dict(scope.get("headers") or [])
        user = headers.get(USER_HEADER)
        user_id_var.set(user.decode("latin-1") if user else None)

        method = scope.get("method", "")
        route = route_label(scope.get("path", ""))
        start = time.monotonic()
        status_code = 500

        async def send_wrapper(message: dict):
            nonlocal status_code
            if message.get("type") == "http.response.start":
                status_code = int(message.get("status", 200))
                message.setdefault("headers", [])
                message["headers"] = list(message["headers"]) + [(b"x-request-id", req_id.encode())]
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            elapsed_ms = (time.monotonic() - start) * 1000.0
            record_timing("request_latency_ms", elapsed_ms, {"route": route})
            inc_counter("requests_total", {"route": route, "status": str(status_code)})
            log_event(
                "request",
                method=method,
                route=route,
                status=status_code,
                ms_total=round(elapsed_ms, 2),
            )
            clear_context()
