"""
Request/response logging middleware.
"""
import logging
import time
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from app.core.logging_config import request_id_context

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log one line per request and tag it with a correlation id.

    The id is taken from the ``X-Request-ID`` header when the caller sends one
    and echoed back on the response. Request bodies are never read here, so
    video uploads stream straight through to the endpoint.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        token = request_id_context.set(request_id)

        start_time = time.time()
        method = request.method
        path = str(request.url.path)
        client_host = request.client.host if request.client else "unknown"

        try:
            response = await call_next(request)
        finally:
            request_id_context.reset(token)

        duration_ms = round((time.time() - start_time) * 1000, 2)
        response.headers[REQUEST_ID_HEADER] = request_id

        extra_fields = {
            "method": method,
            "path": path,
            "status_code": response.status_code,
            "duration_ms": duration_ms,
            "client_host": client_host,
        }

        if response.status_code >= 500:
            logger.error("Server error response", extra=extra_fields)
        elif response.status_code >= 400:
            logger.warning("Client error response", extra=extra_fields)
        else:
            logger.info("Request completed", extra=extra_fields)

        return response
