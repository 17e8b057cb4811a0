"""Request context helpers using ContextVars.

Holds the request id assigned by the middleware and the caller identity
forwarded by the upstream identity provider, so log lines can carry both
without threading them through every call.
"""

from contextvars import ContextVar
from typing import Optional


request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
user_id_var: ContextVar[Optional[str]] = ContextVar("user_id", default=None)


def clear_context() -> None:
    """Reset context variables to defaults."""
    request_id_var.set(None)
    user_id_var.set(None)
