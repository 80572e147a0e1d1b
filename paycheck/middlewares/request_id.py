from __future__ import annotations

import logging
import time
from contextvars import ContextVar
from typing import Any
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

request_id_ctx_var: ContextVar[str | None] = ContextVar("request_id", default=None)
principal_ctx_var: ContextVar[str | None] = ContextVar("principal_id", default=None)
logger = logging.getLogger("paycheck.request")

# path parameters worth lifting into the access log
LOGGED_PATH_PARAMS = ("canvas_id", "panel_id")


def _route_fields(request: Request) -> dict[str, Any]:
    """Route template and canvas/panel ids once the router has matched."""
    fields: dict[str, Any] = {}
    route = request.scope.get("route")
    template = getattr(route, "path", None)
    if template:
        fields["route"] = template
    params = request.scope.get("path_params") or {}
    for name in LOGGED_PATH_PARAMS:
        if name in params:
            fields[name] = params[name]
    return fields


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tag each request with a correlation id and log one access line for it.

    The access line names the authenticated user and, for canvas routes, the
    canvas and panel the request touched. Server errors are logged as warnings.
    """

    def __init__(self, app, header_name: str = "X-Request-ID") -> None:  # type: ignore[override]
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(self.header_name) or str(uuid4())
        token = request_id_ctx_var.set(request_id)
        principal_token = principal_ctx_var.set(None)
        request.state.request_id = request_id
        start = time.perf_counter()
        try:
            response = await call_next(request)
            # sync dependencies run in a worker thread, so fall back to request.state
            principal = principal_ctx_var.get() or getattr(request.state, "principal", None)
        finally:
            request_id_ctx_var.reset(token)
            principal_ctx_var.reset(principal_token)
        duration_ms = (time.perf_counter() - start) * 1000
        response.headers[self.header_name] = request_id
        response.headers.setdefault("X-Response-Time", f"{duration_ms:.2f}ms")

        data: dict[str, Any] = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status": response.status_code,
            "duration_ms": round(duration_ms, 2),
        }
        data.update(_route_fields(request))
        if principal:
            data["principal"] = principal
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(level, "request.completed", extra={"extra_data": data})
        return response
