"""
API Error Handling

Domain exceptions raised by services and routes, and the FastAPI exception
handlers that render every failure in the common envelope:

    {"success": false, "error": "<message>", "validationErrors": [...]}

validationErrors is only present for field-level validation failures.
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Base API exception carrying an HTTP status and a client-facing message"""

    def __init__(
        self,
        status_code: int,
        message: str,
        validation_errors: Optional[List[Dict[str, str]]] = None,
        details: Optional[str] = None,
    ):
        self.status_code = status_code
        self.message = message
        self.validation_errors = validation_errors
        self.details = details
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        content: Dict[str, Any] = {"success": False, "error": self.message}
        if self.details:
            content["details"] = self.details
        if self.validation_errors is not None:
            content["validationErrors"] = self.validation_errors
        return content


class BadRequestError(APIError):
    """Invalid or missing input (400)"""

    def __init__(self, message: str):
        super().__init__(status.HTTP_400_BAD_REQUEST, message)


class NotFoundError(APIError):
    """Resource not found (404)"""

    def __init__(self, message: str):
        super().__init__(status.HTTP_404_NOT_FOUND, message)


class ContentValidationError(APIError):
    """Field-level validation failure with the full list of offending fields (400)"""

    def __init__(self, validation_errors: List[Dict[str, str]]):
        super().__init__(
            status.HTTP_400_BAD_REQUEST,
            "Validation failed",
            validation_errors=validation_errors,
            details="Required fields are missing or invalid",
        )


def _field_path(location: tuple) -> str:
    # Drop the "body"/"query"/"path" prefix pydantic adds
    parts = [str(part) for part in location[1:]] or [str(part) for part in location]
    return ".".join(parts)


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render HTTPException (including the routes' 500s) in the common envelope"""
    message = exc.detail if isinstance(exc.detail, str) else "Internal server error"
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": message},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed query/path/body values are client errors (400), not 422"""
    validation_errors = [
        {
            "field": _field_path(tuple(error.get("loc", ()))),
            "message": error.get("msg", "Invalid value"),
            "code": "INVALID_FORMAT",
        }
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "success": False,
            "error": "Request validation failed",
            "validationErrors": validation_errors,
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle all uncaught exceptions"""
    logger.error(f"Unhandled exception on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "error": str(exc) or "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(APIError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)


def server_error(action: str, exc: Exception) -> HTTPException:
    """Log an unexpected failure and wrap it as a 500 carrying the underlying message"""
    logger.error(f"Error {action}: {exc}", exc_info=True)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc) or "Internal server error")
