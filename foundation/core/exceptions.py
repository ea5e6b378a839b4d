from typing import Any, Dict, List, Optional
from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException
from pydantic import BaseModel
import traceback
import uuid

from foundation.core.logging import logger


class ErrorDetail(BaseModel):
    """Structure for error details"""

    loc: Optional[List[str]] = None
    msg: str
    type: str


class ErrorResponse(BaseModel):
    """Standard error response format"""

    status_code: int
    error_id: str = ""
    message: str
    details: Optional[List[ErrorDetail]] = None


class AppException(Exception):
    """
    Base exception class for application-specific exceptions
    with standardized error responses
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_type = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        status_code: Optional[int] = None,
        details: Optional[List[Dict[str, Any]]] = None,
    ):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.details = details
        self.error_id = str(uuid.uuid4())
        super().__init__(self.message)


class BadRequestError(AppException):
    """400 Bad Request error"""

    status_code = status.HTTP_400_BAD_REQUEST
    error_type = "bad_request"

    def __init__(
        self, message: str = "Bad request", details: Optional[List[Dict[str, Any]]] = None
    ):
        super().__init__(message=message, details=details)


class UnauthorizedError(AppException):
    """401 Unauthorized error"""

    status_code = status.HTTP_401_UNAUTHORIZED
    error_type = "unauthorized"

    def __init__(
        self, message: str = "Unauthorized", details: Optional[List[Dict[str, Any]]] = None
    ):
        super().__init__(message=message, details=details)


class NotFoundError(AppException):
    """404 Not Found error"""

    status_code = status.HTTP_404_NOT_FOUND
    error_type = "not_found"

    def __init__(
        self, message: str = "Resource not found", details: Optional[List[Dict[str, Any]]] = None
    ):
        super().__init__(message=message, details=details)


class ConflictError(AppException):
    """409 Conflict error"""

    status_code = status.HTTP_409_CONFLICT
    error_type = "conflict"

    def __init__(
        self, message: str = "Resource conflict", details: Optional[List[Dict[str, Any]]] = None
    ):
        super().__init__(message=message, details=details)


class ConfigurationMissingError(AppException):
    """
    A mandatory collaborator could not be built because its configuration is absent
    """

    error_type = "configuration_missing"

    def __init__(
        self,
        message: str = "Required configuration is missing",
        parameter: Optional[str] = None,
        details: Optional[List[Dict[str, Any]]] = None,
    ):
        self.parameter = parameter
        if details is None and parameter:
            details = [{"loc": [parameter], "msg": message, "type": self.error_type}]
        super().__init__(message=message, details=details)


class NoSupportedLocaleError(ConfigurationMissingError):
    """No supported locale has been configured"""

    error_type = "no_supported_locale"

    def __init__(self, message: str = "No supported locale has been configured"):
        super().__init__(message=message, parameter="APP_LOCALES")


class TemplateManagerSetupError(ConfigurationMissingError):
    """The template environment could not be set up"""

    error_type = "template_manager_setup_error"

    def __init__(
        self, message: str = "Template manager could not be set up", parameter: str = "TEMPLATES_PATH"
    ):
        super().__init__(message=message, parameter=parameter)


class TemplateNotFoundError(AppException):
    """A requested template does not exist"""

    error_type = "template_not_found"

    def __init__(self, message: str = "Template not found", template: Optional[str] = None):
        self.template = template
        super().__init__(message=message)


class TemplateEvaluationError(AppException):
    """A template failed to compile or render"""

    error_type = "template_evaluation_error"

    def __init__(self, message: str = "Template could not be evaluated", template: Optional[str] = None):
        self.template = template
        super().__init__(message=message)


# Exception handlers
async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for application-specific exceptions"""
    logger.error(
        f"{exc.error_type}: {exc.message}",
        exception=exc,
        path=request.url.path,
        method=request.method,
        error_id=exc.error_id,
        status_code=exc.status_code,
    )

    details = None
    if exc.details:
        details = [
            ErrorDetail(
                loc=detail.get("loc"),
                msg=detail.get("msg", ""),
                type=detail.get("type", exc.error_type),
            )
            for detail in exc.details
        ]

    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            status_code=exc.status_code, error_id=exc.error_id, message=exc.message, details=details
        ).model_dump(),
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException"""
    error_id = str(uuid.uuid4())

    logger.error(
        f"HTTP {exc.status_code}: {exc.detail}",
        path=request.url.path,
        method=request.method,
        error_id=error_id,
        status_code=exc.status_code,
    )

    return JSONResponse(
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
        content=ErrorResponse(
            status_code=exc.status_code, error_id=error_id, message=str(exc.detail)
        ).model_dump(),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Handler for validation errors.
    """
    error_id = str(uuid.uuid4())

    errors = [
        {
            "loc": [str(loc) for loc in error["loc"]],
            "msg": str(error["msg"]),
            "type": str(error["type"]),
        }
        for error in exc.errors()
    ]
    readable_errors = ", ".join(f"{'.'.join(error['loc'])}: {error['msg']}" for error in errors)

    logger.error(
        f"Validation error: {readable_errors}",
        path=request.url.path,
        method=request.method,
        error_id=error_id,
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        errors=errors,
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "message": f"Validation error: {readable_errors}",
            "error_id": error_id,
            "status_code": status.HTTP_422_UNPROCESSABLE_ENTITY,
            "errors": errors,
            "details": None,
        },
    )


async def internal_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unexpected exceptions"""
    error_id = str(uuid.uuid4())

    logger.critical(
        "Unhandled exception",
        exception=exc,
        traceback=traceback.format_exc(),
        path=request.url.path,
        method=request.method,
        error_id=error_id,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )

    # Internal error details are not exposed to the client
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            error_id=error_id,
            message="An unexpected error occurred",
        ).model_dump(),
    )


def register_exception_handlers(app) -> None:
    """Attach the standard exception handlers to a FastAPI application"""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, internal_exception_handler)
