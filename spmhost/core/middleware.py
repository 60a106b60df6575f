"""ASGI middleware for the artifact server.

RequestContextMiddleware binds a request ID for the duration of a request
and writes one access-log line per request. Every log line emitted while
handling the request carries the same ``request_id`` (see
`spmhost.core.logging`), and the ID is echoed in the ``X-Request-ID``
response header.
"""

import logging
import time
import uuid
from contextvars import ContextVar
from typing import Awaitable, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

_request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def get_request_id() -> str:
    """Return the current request's ID, or an empty string outside a request."""
    return _request_id_var.get()


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Reuse or generate X-Request-ID and log the request outcome.

    Artifact bodies are never logged; only method, path, status and timing.
    Downloaded archives are served with ``nosniff`` so browsers do not
    reinterpret them.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        token = _request_id_var.set(request_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.info(
                "%s %s -> %d (%.1fms)",
                request.method, request.url.path, response.status_code, elapsed_ms,
            )
        finally:
            _request_id_var.reset(token)

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Content-Type-Options"] = "nosniff"
        return response
