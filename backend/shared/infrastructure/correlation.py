"""
Request Correlation Middleware.

Tags every request (and every log line emitted while serving it) with a
request ID, and with the tenant and user once the authorization guard has
resolved them, so a single admin action can be followed through the logs
of a multi-tenant deployment.
"""

import uuid
from contextvars import ContextVar
from typing import Callable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# One dict per request. Sync dependencies and endpoints run in copied
# contexts, so the caller is recorded by mutating this dict, not by
# re-setting the variable.
caller_var: ContextVar[Optional[dict[str, int]]] = ContextVar("caller", default=None)


def get_request_id() -> str:
    """Get the current request ID."""
    return request_id_var.get()


def bind_principal(user_id: int, tenant_id: int) -> None:
    """Attach the resolved caller to the current request's log context."""
    caller = caller_var.get()
    if caller is not None:
        caller["user_id"] = user_id
        caller["tenant_id"] = tenant_id


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """
    Reuses an incoming X-Request-ID or generates one, echoes it on the
    response, and scopes the caller context to the request.
    """

    HEADER_NAME = "X-Request-ID"

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        request_id = request.headers.get(self.HEADER_NAME) or str(uuid.uuid4())

        request_token = request_id_var.set(request_id)
        caller_token = caller_var.set({})
        try:
            request.state.request_id = request_id
            response = await call_next(request)
            response.headers[self.HEADER_NAME] = request_id
            return response
        finally:
            caller_var.reset(caller_token)
            request_id_var.reset(request_token)


class CorrelationIdFilter:
    """
    Logging filter that adds request_id, tenant_id and user_id to records.

    Usage:
        handler = logging.StreamHandler()
        handler.addFilter(CorrelationIdFilter())
    """

    def filter(self, record) -> bool:
        caller = caller_var.get() or {}
        record.request_id = request_id_var.get() or "-"
        record.tenant_id = caller.get("tenant_id")
        record.user_id = caller.get("user_id")
        return True
