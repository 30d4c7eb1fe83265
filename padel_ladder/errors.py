import logging
from typing import Any, Dict, Union

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Unable to process your request at this time"
INVALID_FORMAT = "Invalid request format"
MISSING_FIELDS = "Missing required fields"


class AppException(Exception):
    """Base exception for errors that map onto a client-facing response."""

    def __init__(self, status_code: int, detail: Union[str, Dict[str, Any]]):
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail


class ClientInputError(AppException):
    """Rejected before anything was written."""

    def __init__(self, detail: str = "Bad request"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class ConflictError(AppException):
    def __init__(self, detail: str = "Conflict"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class ServiceUnavailableError(AppException):
    """The store could not serve the request; detail stays generic."""

    def __init__(self, detail: str = GENERIC_ERROR):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail
        )


def error_response(status_code: int, detail, **extra):
    return JSONResponse(status_code=status_code, content={"error": detail, **extra})


# Exception handlers
async def app_exception_handler(request: Request, exc: AppException):
    cause = exc.__cause__
    if exc.status_code >= 500:
        logger.error(
            f"{request.method} {request.url.path} failed: {exc.detail} "
            f"(Status: {exc.status_code}) - cause: {cause!r}"
        )
    else:
        logger.warning(
            f"{request.method} {request.url.path} rejected: {exc.detail} "
            f"(Status: {exc.status_code})"
        )
    return error_response(exc.status_code, exc.detail)


def describe_validation_errors(errors):
    """Collapse pydantic errors into the single message shown to the caller."""
    for error in errors:
        if error["type"] in ("json_invalid", "model_type", "model_attributes_type", "dict_type"):
            return INVALID_FORMAT
    for error in errors:
        if error["type"] == "missing":
            return MISSING_FIELDS
    for error in errors:
        if error["type"] == "value_error":
            ctx = error.get("ctx") or {}
            if "error" in ctx:
                return str(ctx["error"])
            return error["msg"].replace("Value error, ", "", 1)
    return INVALID_FORMAT


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    logger.info(f"Invalid payload for {request.method} {request.url.path}: {errors}")
    return error_response(
        status.HTTP_400_BAD_REQUEST, describe_validation_errors(errors)
    )


async def general_exception_handler(request: Request, exc: Exception):
    logger.error(
        f"Unexpected error in {request.method} {request.url.path}: {exc}",
        exc_info=exc,
    )
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_ERROR)


def register_exception_handlers(app):
    """Register all exception handlers with the FastAPI application."""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
