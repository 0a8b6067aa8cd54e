"""
Notes API — Request ID Middleware
==================================

What:  Assigns a short unique ID to each incoming request and returns it in
       the X-Request-ID response header.
Why:   Every log entry and error body of one request shares the same ID.
How:   Reuses a client-supplied X-Request-ID or generates one, stores it in a
       ContextVar and on request.state.

Unhandled exceptions are turned into the 500 error envelope here rather than
in ServerErrorMiddleware, which sits outside this layer and would drop the
X-Request-ID header.
"""

import logging
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from notes_api.exceptions import error_response

logger = logging.getLogger(__name__)

# Coroutine-local storage for the current request ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Behavior:
        1. Use the client's X-Request-ID header if present
        2. Otherwise generate an 8-character ID from a UUID4
        3. Store it in request_id_var and request.state.request_id
        4. Echo it in the response headers, including on unhandled errors
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]

        request_id_var.set(rid)
        request.state.request_id = rid

        try:
            response = await call_next(request)
        except Exception as e:
            # Stack trace stays server-side
            logger.error("[%s] Unexpected error: %s", rid, str(e), exc_info=True)
            response = error_response(
                500,
                "internal_server_error",
                "An unexpected error occurred. Please try again later.",
                request_id=rid,
            )

        response.headers["X-Request-ID"] = rid
        return response
