"""Error codes and the JSON error envelope shared by every route."""

import logging
from enum import Enum

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from kairopay.logging_config import log_api_error

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    INVALID_REQUEST = "INVALID_REQUEST"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"

    MERCHANT_EXISTS = "MERCHANT_EXISTS"
    MERCHANT_NOT_FOUND = "MERCHANT_NOT_FOUND"
    APP_NOT_FOUND = "APP_NOT_FOUND"
    ORDER_NOT_FOUND = "ORDER_NOT_FOUND"
    ORDER_EXPIRED = "ORDER_EXPIRED"
    INVALID_ORDER_STATUS = "INVALID_ORDER_STATUS"
    NO_CONFIRMED_TRANSACTION = "NO_CONFIRMED_TRANSACTION"
    TRANSACTION_EXISTS = "TRANSACTION_EXISTS"
    TRANSACTION_NOT_FOUND = "TRANSACTION_NOT_FOUND"

    INTERNAL_ERROR = "INTERNAL_ERROR"
    DATABASE_ERROR = "DATABASE_ERROR"

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS[self]


_HTTP_STATUS = {
    ErrorCode.INVALID_REQUEST: 400,
    ErrorCode.UNAUTHORIZED: 401,
    ErrorCode.FORBIDDEN: 403,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.CONFLICT: 409,
    ErrorCode.MERCHANT_EXISTS: 409,
    ErrorCode.MERCHANT_NOT_FOUND: 404,
    ErrorCode.APP_NOT_FOUND: 404,
    ErrorCode.ORDER_NOT_FOUND: 404,
    ErrorCode.ORDER_EXPIRED: 400,
    ErrorCode.INVALID_ORDER_STATUS: 400,
    ErrorCode.NO_CONFIRMED_TRANSACTION: 400,
    ErrorCode.TRANSACTION_EXISTS: 409,
    ErrorCode.TRANSACTION_NOT_FOUND: 404,
    ErrorCode.INTERNAL_ERROR: 500,
    ErrorCode.DATABASE_ERROR: 500,
}

# Starlette-level failures (unknown route, wrong method, ...) by status
_STATUS_TO_CODE = {
    400: ErrorCode.INVALID_REQUEST,
    401: ErrorCode.UNAUTHORIZED,
    403: ErrorCode.FORBIDDEN,
    404: ErrorCode.NOT_FOUND,
    409: ErrorCode.CONFLICT,
}


class APIError(Exception):
    """A failure that maps directly onto the error envelope."""

    def __init__(self, code: ErrorCode, message: str):
        super().__init__(message)
        self.code = code
        self.message = message

    @property
    def status_code(self) -> int:
        return self.code.http_status


def error_body(code: str, message: str) -> dict:
    return {"success": False, "error": {"code": code, "message": message}}


def error_response(code: ErrorCode, message: str, status_code: int | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code or code.http_status,
        content=error_body(code.value, message),
    )


def _describe_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    # drop the "body"/"query" location prefix
    field = ".".join(str(part) for part in first.get("loc", ())[1:])
    message = first.get("msg", "is invalid")
    return f"{field}: {message}" if field else message


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError):
        if exc.status_code >= 500:
            logger.error("%s %s -> %s: %s", request.method, request.url.path, exc.code.value, exc.message)
        return error_response(exc.code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return error_response(ErrorCode.INVALID_REQUEST, _describe_validation_error(exc))

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        code = _STATUS_TO_CODE.get(exc.status_code, ErrorCode.INTERNAL_ERROR)
        message = str(exc.detail) if exc.detail else "An error occurred"
        return error_response(code, message, status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        log_api_error(logger, request.method, request.url.path, **request.path_params)
        return error_response(ErrorCode.INTERNAL_ERROR, "Internal server error")
