import traceback
from typing import Any, Dict, List

from fastapi import HTTPException, Request, status
from fastapi.exceptions import RequestValidationError, ResponseValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.domain.exceptions import ApplicationError
from core.presentation.responses import ErrorResponse

from ..factory import get_data_sanitizer

HTTP_STATUS_MESSAGES = {
    status.HTTP_400_BAD_REQUEST: "Bad request",
    status.HTTP_401_UNAUTHORIZED: "Authentication required",
    status.HTTP_403_FORBIDDEN: "Permission denied",
    status.HTTP_404_NOT_FOUND: "Resource not found",
    status.HTTP_409_CONFLICT: "Conflict occurred",
    status.HTTP_422_UNPROCESSABLE_ENTITY: "Validation error",
    status.HTTP_429_TOO_MANY_REQUESTS: "Rate limit exceeded",
}


def normalize_error_detail(detail: Any) -> str | List[str] | Dict[str, Any]:
    """Normalize an error detail to a string or list of strings.

    Parameters
    ----------
    detail: Any
        Raw error detail, which can be a string, dictionary, or list.

    Returns
    -------
    str | List[str] | Dict[str, Any]
        Normalized representation of the error detail.
    """
    if isinstance(detail, str):
        return detail

    if isinstance(detail, dict):
        return {str(key): str(value) for key, value in detail.items()}

    if hasattr(detail, "__iter__"):
        return [str(item) for item in detail]

    return str(detail)


def _error_response(
    request: Request, status_code: int, message: str, errors: Dict[str, Any]
) -> JSONResponse:
    content = ErrorResponse(
        message=message,
        errors=errors,
        status_code=status_code,
        path=str(request.url),
        method=request.method,
    )
    return JSONResponse(status_code=status_code, content=content.model_dump())


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler for the FastAPI application.

    Converts application errors, validation errors, database errors and HTTP
    exceptions into a consistent JSON envelope. Sensitive information is
    sanitized before logging.

    Parameters
    ----------
    request: Request
        Incoming FastAPI request object.
    exc: Exception
        Exception that was caught.

    Returns
    -------
    JSONResponse
        Standardized error response with the appropriate HTTP status code.
    """
    exc_type = type(exc).__name__
    sanitizer = await get_data_sanitizer()
    exc_msg = sanitizer.sanitize_exception_for_logging(exc)

    if isinstance(exc, ApplicationError):
        if exc.status_code >= 500:
            logger.error(f"📝 {exc_type}: {exc_msg}")
        else:
            logger.warning(f"⚠️ {exc_type}: {exc_msg}")

        return _error_response(
            request, exc.status_code, exc.message, {"detail": exc.detail}
        )

    if isinstance(exc, IntegrityError):
        logger.error(f"📝 IntegrityError -> {exc_msg}")
        return _error_response(
            request,
            status.HTTP_409_CONFLICT,
            "Database constraint violation",
            {"detail": "A database constraint was violated"},
        )

    if isinstance(exc, SQLAlchemyError):
        logger.error(f"📝 SQLAlchemyError -> {exc_type}: {exc_msg}")
        return _error_response(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Database error occurred",
            {"detail": "A database error occurred"},
        )

    if isinstance(
        exc, (ValidationError, RequestValidationError, ResponseValidationError)
    ):
        errors = {}
        for error in exc.errors():
            field = ".".join(str(x) for x in error["loc"])
            errors[field or "detail"] = error["msg"]

        return _error_response(
            request, status.HTTP_422_UNPROCESSABLE_ENTITY, "Validation error", errors
        )

    if isinstance(exc, ValueError):
        return _error_response(
            request,
            status.HTTP_400_BAD_REQUEST,
            "Invalid field items",
            {"detail": str(exc)},
        )

    if isinstance(exc, (HTTPException, StarletteHTTPException)):
        message = HTTP_STATUS_MESSAGES.get(exc.status_code, "HTTP error occurred")
        if exc.status_code >= 500:
            message = "Internal server error"

        response = _error_response(
            request,
            exc.status_code,
            message,
            {"detail": normalize_error_detail(exc.detail)},
        )
        if getattr(exc, "headers", None):
            response.headers.update(exc.headers)
        return response

    tb = traceback.extract_tb(exc.__traceback__)
    if tb:
        last_frame = tb[-1]
        location = f'File "{last_frame.filename}", line {last_frame.lineno}, in {last_frame.name}'
    else:
        location = "No traceback available"

    logger.critical(
        f"☢️ Unhandled exception -> {exc_type}: {exc_msg}\nLocation: {location}"
    )

    return _error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Internal server error",
        {"detail": "An unexpected error occurred"},
    )
