"""
Archinnection Backend: Request ID Middleware
==============================================

What:  Assigns a correlation ID to each request and echoes it in the response.
How:   Reuses a well-formed X-Request-ID from the client, otherwise generates
       a short UUID; stores it in a ContextVar and on request.state.
Who:   Every request. Error bodies (error_body) and the access log read
       the ContextVar.
"""

import re
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from archinnection.exceptions import ArchinnectionError

# Coroutine-local: concurrent requests on one event loop each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

_VALID_CLIENT_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def new_request_id() -> str:
    return uuid.uuid4().hex[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Behavior:
        1. Accept the client's X-Request-ID when it is short and URL-safe
        2. Otherwise generate an 8-character hex ID
        3. Publish it via request_id_var and request.state.request_id
        4. Return it in the X-Request-ID response header
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        client_id = request.headers.get("X-Request-ID", "")
        rid = client_id if _VALID_CLIENT_ID.match(client_id) else new_request_id()

        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers["X-Request-ID"] = rid
        return response


def error_body(exc: ArchinnectionError, include_details: bool = True) -> dict:
    """JSON error payload tagged with the current request ID."""
    body = {
        "error": exc.error_code,
        "message": exc.message,
        "request_id": request_id_var.get(""),
    }
    if include_details and exc.context:
        body["details"] = exc.context
    return body
