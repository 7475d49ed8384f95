"""
Exception handlers that render every failure in the response envelope.

``fail`` is used for client errors, ``error`` for server faults. Server-side
details are logged but never sent to the client.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core.exceptions import DomainException
from .core.request_context import get_request_id
from .schemas.base_responses import envelope_status_for

logger = logging.getLogger(__name__)

GENERIC_SERVER_ERROR = "Internal Server Error"
_LOCATION_PREFIXES = {"body", "query", "path", "header", "cookie"}
_VALUE_ERROR_PREFIX = "Value error, "


def _envelope(
    status_code: int,
    message: str,
    *,
    code: Optional[str] = None,
    errors: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    body: Dict[str, Any] = {"status": envelope_status_for(status_code), "message": message}
    if code:
        body["code"] = code
    if errors is not None:
        body["errors"] = errors
    request_id = get_request_id()
    if request_id:
        body["requestId"] = request_id
    return body


def _field_name(loc: Sequence[Any]) -> str:
    parts = [str(p) for p in loc if not (isinstance(p, str) and p in _LOCATION_PREFIXES)]
    return ".".join(parts)


def format_validation_errors(raw_errors: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Flatten pydantic errors into ``{field, message}`` pairs with readable messages."""
    formatted = []
    for err in raw_errors:
        field = _field_name(err.get("loc", ()))
        msg = str(err.get("msg", "Invalid value"))
        if msg.startswith(_VALUE_ERROR_PREFIX):
            # Custom validator messages are already phrased for the client.
            message = msg[len(_VALUE_ERROR_PREFIX) :]
        elif field:
            message = f"{field}: {msg}"
        else:
            message = msg
        formatted.append({"field": field or None, "message": message})
    return formatted


def validation_message(errors: Sequence[Dict[str, Any]]) -> str:
    seen: List[str] = []
    for err in errors:
        if err["message"] not in seen:
            seen.append(err["message"])
    return ", ".join(seen) or "Validation failed"


def _validation_response(raw_errors: Sequence[Dict[str, Any]]) -> JSONResponse:
    errors = format_validation_errors(raw_errors)
    return JSONResponse(
        _envelope(400, validation_message(errors), code="VALIDATION_ERROR", errors=errors),
        status_code=400,
    )


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(DomainException)
    async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
        status_code = exc.status_code
        if status_code >= 500:
            logger.error(
                f"Domain error on {request.method} {request.url.path}: {exc.message}",
                exc_info=exc,
            )
            return JSONResponse(_envelope(status_code, GENERIC_SERVER_ERROR), status_code=status_code)

        logger.info(
            f"{exc.__class__.__name__} on {request.method} {request.url.path}: {exc.message}",
            extra={"code": exc.code},
        )
        body = _envelope(status_code, exc.message, code=exc.code)
        if exc.details:
            body["details"] = exc.details
        return JSONResponse(body, status_code=status_code)

    @app.exception_handler(StarletteHTTPException)
    async def starlette_http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        if exc.status_code == 404 and exc.detail in (None, "Not Found"):
            message = "Endpoint not found"
        elif isinstance(exc.detail, str):
            message = exc.detail
        else:
            message = str(exc.detail)
        return JSONResponse(
            _envelope(exc.status_code, message),
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return _validation_response(exc.errors())

    @app.exception_handler(ValidationError)
    async def validation_exception_handler(request: Request, exc: ValidationError) -> JSONResponse:
        return _validation_response(exc.errors())

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            f"Unhandled error on {request.method} {request.url.path}: {str(exc)}",
            exc_info=exc,
        )
        return JSONResponse(_envelope(500, GENERIC_SERVER_ERROR), status_code=500)
