from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from allergen_scanner.utils.request_context import (
    REQUEST_ID_HEADER,
    clear_request_id,
    new_request_id,
    set_request_id,
)


class RequestIdMiddleware(BaseHTTPMiddleware):
    """
    Propagates X-Request-Id: reuses the inbound header or mints a new id,
    exposes it to logging (contextvar) and to error handlers (request.state),
    and echoes it on the response.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        rid = request.headers.get(REQUEST_ID_HEADER) or new_request_id()

        set_request_id(rid)
        request.state.request_id = rid

        try:
            response = await call_next(request)
        finally:
            clear_request_id()

        response.headers[REQUEST_ID_HEADER] = rid
        return response
