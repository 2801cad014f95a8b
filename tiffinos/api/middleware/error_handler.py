"""
Error handler middleware and custom exceptions.

Services raise the exceptions below; the handlers registered on the app turn
them into a consistent JSON body:

    {"error": "...", "correlation_id": "...", "details": {...}}
"""
import logging
from typing import Optional, Dict, Any
from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from tiffinos.lib.logging import get_logger

logger = get_logger(__name__)


# Custom exception classes
class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundException(AppException):
    """Resource not found, or owned by another vendor."""

    def __init__(self, resource: str, resource_id: Optional[str] = None):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with id '{resource_id}' not found"
        super().__init__(
            message=message,
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "resource_id": resource_id},
        )


class UnauthorizedException(AppException):
    """Missing or invalid credentials."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(
            message=message,
            status_code=status.HTTP_401_UNAUTHORIZED,
        )


class ForbiddenException(AppException):
    """Authenticated but not allowed."""

    def __init__(self, message: str = "Forbidden"):
        super().__init__(
            message=message,
            status_code=status.HTTP_403_FORBIDDEN,
        )


class BadRequestException(AppException):
    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details or {},
        )


class ConflictException(AppException):
    """Request clashes with the current state of a record."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=status.HTTP_409_CONFLICT,
            details=details or {},
        )


class InvalidStateTransition(ConflictException):
    """A lifecycle move the state machine does not allow (e.g. cancelling a completed plan)."""

    def __init__(self, resource: str, current_state: str, target_state: str):
        super().__init__(
            message=f"{resource} cannot move from '{current_state}' to '{target_state}'",
            details={
                "resource": resource,
                "current_state": current_state,
                "target_state": target_state,
            },
        )


class ValidationException(AppException):
    def __init__(self, message: str, errors: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=422,
            details={"errors": errors or {}},
        )


def _request_context(request: Request) -> Dict[str, Any]:
    return {
        "correlation_id": getattr(request.state, "correlation_id", "unknown"),
        "path": request.url.path,
        "method": request.method,
    }


# Exception handlers
async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """
    Handler for custom application exceptions.

    Client errors log at WARNING, server errors at ERROR.
    """
    context = _request_context(request)

    log_level = logging.WARNING if exc.status_code < 500 else logging.ERROR
    logger.log(
        log_level,
        f"Application error: {exc.message}",
        extra={**context, "status_code": exc.status_code, "details": exc.details},
    )

    response_content = {
        "error": exc.message,
        "correlation_id": context["correlation_id"],
    }
    if exc.details:
        response_content["details"] = exc.details

    return JSONResponse(
        status_code=exc.status_code,
        content=response_content,
    )


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    """
    Handler for Pydantic validation errors on request bodies and parameters.
    """
    context = _request_context(request)

    errors = [
        {
            "loc": list(error["loc"]),
            "msg": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]

    logger.warning(
        "Validation error",
        extra={**context, "errors": errors},
    )

    return JSONResponse(
        status_code=422,
        content={
            "error": "Validation error",
            "correlation_id": context["correlation_id"],
            "details": {"errors": errors},
        },
    )


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    """
    Handler for Starlette HTTP exceptions (404 on unknown routes, 401 from HTTPBearer, ...).
    """
    context = _request_context(request)

    logger.warning(
        f"HTTP exception: {exc.detail}",
        extra={**context, "status_code": exc.status_code},
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.detail,
            "correlation_id": context["correlation_id"],
        },
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handler for unhandled exceptions.

    Logs full stack trace and returns generic error message.
    """
    context = _request_context(request)

    logger.error(
        f"Unhandled exception: {exc}",
        extra=context,
        exc_info=True,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal server error",
            "correlation_id": context["correlation_id"],
        },
    )
