from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from allergen_scanner.errors import (
    ScanError,
    ServiceError,
    ServiceInvalidOutput,
    ServiceTimeout,
    ValidationError,
)
from allergen_scanner.utils.request_context import REQUEST_ID_HEADER

logger = logging.getLogger(__name__)


def _get_request_id(request: Request) -> Optional[str]:
    """
    request.state.request_id is set by RequestIdMiddleware; fall back to the inbound header.
    """
    rid = getattr(getattr(request, "state", None), "request_id", None)
    if rid:
        return rid
    return request.headers.get(REQUEST_ID_HEADER)


def _error_payload(code: str, message: str, request_id: Optional[str]) -> Dict[str, Any]:
    return {"error": {"code": code, "message": message, "request_id": request_id}}


def _error_response(request: Request, status_code: int, code: str, message: str) -> JSONResponse:
    rid = _get_request_id(request)
    return JSONResponse(
        status_code=status_code,
        content=_error_payload(code=code, message=message, request_id=rid),
        headers={REQUEST_ID_HEADER: rid} if rid else None,
    )


def scan_error_to_http(exc: ScanError) -> HTTPException:
    """
    Map the scan error taxonomy onto HTTP:
    - ValidationError        -> 400 (client should prompt "try again")
    - ServiceTimeout         -> 504
    - ServiceInvalidOutput   -> 502
    - other ServiceError     -> 502
    """
    if isinstance(exc, ValidationError):
        status = 400
    elif isinstance(exc, ServiceTimeout):
        status = 504
    elif isinstance(exc, (ServiceInvalidOutput, ServiceError)):
        status = 502
    else:
        status = 500
    return HTTPException(status_code=status, detail={"code": exc.code, "message": str(exc)})


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """
    Normalize HTTPException into the global error schema.
    detail may be a dict {"code", "message"} (our routes) or a plain string (framework default).
    """
    code = "http_error"
    message = "Request failed"

    if isinstance(exc.detail, dict):
        code = str(exc.detail.get("code", code))
        message = str(exc.detail.get("message", message))
    elif isinstance(exc.detail, str):
        message = exc.detail

    return _error_response(request, exc.status_code, code, message)


async def scan_error_handler(request: Request, exc: ScanError) -> JSONResponse:
    http_exc = scan_error_to_http(exc)
    return await http_exception_handler(request, http_exc)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    422 with a short "loc: msg; loc: msg" summary instead of the raw error list.
    """
    parts = []
    for err in exc.errors():
        loc = ".".join(str(x) for x in err.get("loc", []) if x != "body")
        msg = err.get("msg", "Invalid value")
        parts.append(f"{loc}: {msg}" if loc else str(msg))

    message = "; ".join(parts) if parts else "Validation error"
    return _error_response(request, 422, "validation_error", message)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error")
    return _error_response(request, 500, "internal_error", "Internal server error")
