import logging
from decimal import Decimal

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import OperationalError

from app.stockflow.core.error_catalog import AppError, ErrorCatalog, ErrorDefinition
from app.stockflow.core.metrics import metrics

logger = logging.getLogger(__name__)

_HTTP_STATUS_CODES = {
    400: "INVALID_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    409: "CONFLICT",
}

_LOCK_TOKENS = (
    "lock timeout",
    "deadlock detected",
    "database is locked",
    "could not obtain lock",
    "could not serialize access",
)

_REQUEST_LOCATIONS = {"body", "query", "path", "header"}


def is_lock_error(exc: BaseException) -> bool:
    """True for driver errors raised while waiting on a row or database lock."""
    if not isinstance(exc, OperationalError):
        return False
    message = str(exc).lower()
    return any(token in message for token in _LOCK_TOKENS)


def json_safe(value):
    if isinstance(value, Decimal):
        return format(value, "f")
    if isinstance(value, dict):
        return {key: json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [json_safe(item) for item in value]
    return value


def error_response(code: str, message: str, details: object, trace_id: str, status_code: int) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "code": code,
            "message": message,
            "details": json_safe(details),
            "trace_id": trace_id,
        },
    )


def _render(request: Request, error: ErrorDefinition, details: object, exc: Exception) -> JSONResponse:
    request.state.error_code = error.code
    request.state.error_class = exc.__class__.__name__
    return error_response(
        code=error.code,
        message=error.message,
        details=details,
        trace_id=getattr(request.state, "trace_id", ""),
        status_code=error.status_code,
    )


def _validation_errors(exc: RequestValidationError) -> list[dict]:
    errors = []
    for error in exc.errors():
        loc = list(error.get("loc", []))
        errors.append(
            {
                "field": ".".join(str(part) for part in loc if part not in _REQUEST_LOCATIONS) or None,
                "message": error.get("msg", "Invalid value"),
                "type": error.get("type", "validation_error"),
                "loc": loc,
            }
        )
    return errors


def _http_error(exc: HTTPException) -> tuple[ErrorDefinition, object]:
    detail = exc.detail
    message = str(detail) if detail is not None else "HTTP error"
    details = None
    if isinstance(detail, dict):
        message = str(detail.get("message", message))
        details = {key: value for key, value in detail.items() if key != "message"} or None
    elif isinstance(detail, list):
        details = {"errors": detail}
    code = _HTTP_STATUS_CODES.get(exc.status_code, "HTTP_ERROR")
    return ErrorDefinition(code, message, exc.status_code), details


def setup_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        return _render(request, exc.error, exc.details, exc)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        error, details = _http_error(exc)
        return _render(request, error, details, exc)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return _render(request, ErrorCatalog.VALIDATION_ERROR, {"errors": _validation_errors(exc)}, exc)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        details = {"type": exc.__class__.__name__}
        if is_lock_error(exc):
            metrics.increment_lock_wait_timeout()
            return _render(request, ErrorCatalog.LOCK_TIMEOUT, details, exc)
        logger.error("unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
        return _render(request, ErrorCatalog.INTERNAL_ERROR, details, exc)
