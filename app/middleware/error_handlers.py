# Exception handlers producing the uniform error envelope:
# {"success": false, "error": {code, message, details?, statusCode, timestamp}}

import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.clock import utcnow
from app.core.errors import AppError, ErrorCode

logger = logging.getLogger("app")

_LOCATION_PREFIXES = {"body", "query", "path", "header", "cookie"}

_STATUS_CODES = {
    400: ErrorCode.BAD_REQUEST,
    401: ErrorCode.UNAUTHORIZED,
    403: ErrorCode.FORBIDDEN,
    404: ErrorCode.RESOURCE_NOT_FOUND,
    409: ErrorCode.CONFLICT,
    429: ErrorCode.RATE_LIMIT_EXCEEDED,
    501: ErrorCode.NOT_IMPLEMENTED,
    502: ErrorCode.EXTERNAL_SERVICE_ERROR,
    503: ErrorCode.SERVICE_UNAVAILABLE,
}


def error_response(
    status_code: int,
    code: ErrorCode,
    message: str,
    details: Any = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    error: Dict[str, Any] = {
        "code": code.value if isinstance(code, ErrorCode) else code,
        "message": message,
        "statusCode": status_code,
        "timestamp": utcnow().isoformat() + "Z",
    }
    if details is not None:
        error["details"] = details
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder({"success": False, "error": error}),
        headers=headers,
    )


def _field_path(loc) -> str:
    parts = [str(part) for part in loc]
    if parts and parts[0] in _LOCATION_PREFIXES:
        parts = parts[1:]
    return ".".join(parts) or "body"


def _clean_message(msg: str) -> str:
    # pydantic prefixes messages raised from custom validators
    for prefix in ("Value error, ", "Assertion failed, "):
        if msg.startswith(prefix):
            return msg[len(prefix):]
    return msg


def validation_details(errors) -> List[Dict[str, str]]:
    return [{"field": _field_path(err.get("loc", ())), "message": _clean_message(err.get("msg", ""))} for err in errors]


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{exc.code.value} on {request.method} {request.url.path}: {exc.message}")
    return error_response(exc.status_code, exc.code, exc.message, exc.details, exc.headers)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = validation_details(exc.errors())
    logger.info(f"Validation failed on {request.method} {request.url.path}: {details}")
    return error_response(400, ErrorCode.VALIDATION_ERROR, "Validation failed", details)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        return error_response(
            404,
            ErrorCode.RESOURCE_NOT_FOUND,
            f"Route {request.method} {request.url.path} not found",
        )
    code = _STATUS_CODES.get(exc.status_code)
    if code is None:
        code = ErrorCode.INTERNAL_ERROR if exc.status_code >= 500 else ErrorCode.BAD_REQUEST
    return error_response(exc.status_code, code, str(exc.detail), headers=getattr(exc, "headers", None))


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    logger.warning(f"Constraint violation on {request.method} {request.url.path}: {exc.orig}")
    details = str(exc.orig) if request.app.state.settings.is_development else None
    return error_response(409, ErrorCode.CONFLICT, "The request conflicts with existing data", details)


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception(f"Database error on {request.method} {request.url.path}")
    details = str(exc) if request.app.state.settings.is_development else None
    return error_response(500, ErrorCode.DATABASE_ERROR, "A database error occurred", details)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    details = str(exc) if request.app.state.settings.is_development else None
    return error_response(500, ErrorCode.INTERNAL_ERROR, "An unexpected error occurred", details)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
