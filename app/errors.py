"""Error taxonomy shared by the permission core and the HTTP layer.

Guards and services raise these; routes never build error responses by hand.
`register_exception_handlers` turns them into the
``{"success": false, "error": <code>, "detail": <message>}`` envelope.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)

class AppError(Exception):
    status_code = 400
    code = "error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

class ValidationFailed(AppError):
    status_code = 400
    code = "validation_error"

class Unauthenticated(AppError):
    status_code = 401
    code = "unauthenticated"

    def __init__(self, message: str = "authentication required") -> None:
        super().__init__(message)

class NotMember(AppError):
    status_code = 403
    code = "not_member"

    def __init__(self, message: str = "You are not a member of this workspace") -> None:
        super().__init__(message)

class Forbidden(AppError):
    status_code = 403
    code = "forbidden"

    def __init__(self, message: str = "You do not have permission to perform this action") -> None:
        super().__init__(message)

class NotFound(AppError):
    status_code = 404
    code = "not_found"

class Conflict(AppError):
    status_code = 409
    code = "conflict"

class Expired(AppError):
    status_code = 410
    code = "expired"

def _envelope(status_code: int, code: str, detail, **extra) -> JSONResponse:
    body = {"success": False, "error": code, "detail": detail}
    body.update(extra)
    return JSONResponse(status_code=status_code, content=body)

def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code == 403:
        logger.debug("denied %s %s: %s", request.method, request.url.path, exc.message)
    return _envelope(exc.status_code, exc.code, exc.message)

def _validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = jsonable_encoder(exc.errors())
    first = errors[0] if errors else {}
    loc = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    msg = first.get("msg", "invalid request")
    detail = f"{loc}: {msg}" if loc else msg
    return _envelope(400, ValidationFailed.code, detail, errors=errors)

def _http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    code = {
        400: ValidationFailed.code,
        401: Unauthenticated.code,
        403: Forbidden.code,
        404: NotFound.code,
        409: Conflict.code,
        410: Expired.code,
        429: "rate_limited",
    }.get(exc.status_code, "http_error")
    return _envelope(exc.status_code, code, exc.detail)

def _unhandled_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return _envelope(500, "internal_error", "internal server error")

def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, _app_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_handler)
    app.add_exception_handler(HTTPException, _http_exception_handler)
    app.add_exception_handler(Exception, _unhandled_handler)
