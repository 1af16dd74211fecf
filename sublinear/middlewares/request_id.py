from __future__ import annotations

import logging
import time
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from ..core.logging import log_event, request_id_ctx_var

REQUEST_ID_HEADER = "X-Request-ID"

logger = logging.getLogger("sublinear.request")


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Correlate each request with an id and write one ``request.completed`` line.

    The id is taken from the caller's ``X-Request-ID`` header when present and
    echoed back on the response. The principal and operation name are read
    from ``request.state``, where the ``/graphql`` route records them.
    """

    def __init__(self, app, header_name: str = REQUEST_ID_HEADER) -> None:  # type: ignore[override]
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(self.header_name) or uuid4().hex
        request.state.request_id = request_id
        token = request_id_ctx_var.set(request_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
        finally:
            request_id_ctx_var.reset(token)

        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        response.headers[self.header_name] = request_id
        response.headers["X-Response-Time"] = f"{elapsed_ms:.2f}ms"
        log_event(
            logger,
            "request.completed",
            level=logging.WARNING if response.status_code >= 500 else logging.INFO,
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=elapsed_ms,
            principal=getattr(request.state, "principal", None),
            operation=getattr(request.state, "operation", None),
        )
        return response
