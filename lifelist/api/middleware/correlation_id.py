"""Per-request IDs for log correlation.

The ID comes from the first of ``REQUEST_ID_HEADERS`` the client sent, or a
fresh UUID. Log records emitted while the request is handled carry it, and
the response echoes it as ``X-Request-ID``.
"""

import uuid
from collections.abc import Callable
from contextvars import ContextVar
from typing import Any, Optional

from aiohttp import web

REQUEST_ID_HEADERS = ("X-Request-ID", "X-Correlation-ID")
NO_REQUEST_ID = "no-request-id"

request_id_var: ContextVar[str] = ContextVar("request_id", default="")


def _incoming_request_id(request: web.Request) -> Optional[str]:
    for header in REQUEST_ID_HEADERS:
        value = request.headers.get(header, "").strip()
        if value:
            return value
    return None


@web.middleware
async def correlation_id_middleware(
    request: web.Request, handler: Callable[[web.Request], Any]
) -> web.StreamResponse:
    """Tag the request, its log records and its response with a request ID."""
    request_id = _incoming_request_id(request) or str(uuid.uuid4())
    request["correlation_id"] = request_id

    token = request_id_var.set(request_id)
    try:
        response = await handler(request)
    except web.HTTPException as exc:
        exc.headers["X-Request-ID"] = request_id
        raise
    finally:
        request_id_var.reset(token)

    response.headers["X-Request-ID"] = request_id
    return response


def get_request_id() -> str:
    """ID of the request being handled, or ``NO_REQUEST_ID`` outside one."""
    return request_id_var.get() or NO_REQUEST_ID
