"""
Domain errors for the room transformation pipeline and the handler that renders them.

Every error carries the HTTP status the route layer reports, so callers can tell
retryable (5xx) from non-retryable (4xx) failures.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class RoomSparkError(Exception):
    """Base class for errors that cross a pipeline stage boundary"""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str = None, status_code: int = None):
        self.message = message or self.default_message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status_code < 500


class ValidationError(RoomSparkError):
    """Missing or malformed required input"""

    status_code = 400
    default_message = "Invalid request"


class UnauthorizedError(RoomSparkError):
    """Caller does not own the resource, or caller identity is missing"""

    status_code = 403
    default_message = "Invalid project ID or unauthorized"


class ProcessingError(RoomSparkError):
    """Local image decode/transform failure"""

    status_code = 400
    default_message = "Failed to process image"


class StorageError(RoomSparkError):
    """Blob write or URL signing failure"""

    status_code = 500
    default_message = "Failed to upload file"


class PersistenceError(RoomSparkError):
    """Metadata row insert/update failure"""

    status_code = 500
    default_message = "Database operation failed"


class ProviderError(RoomSparkError):
    """Generation backend or remote fetch failed or returned an unusable payload"""

    status_code = 502
    default_message = "Upstream provider failed"


class DiscoveryError(RoomSparkError):
    """Product discovery found nothing or the search backend reported an error"""

    status_code = 502
    default_message = "Failed to get products from image"


class InvalidStateTransition(RoomSparkError):
    """Pipeline asked to move between states that are not connected"""

    status_code = 500
    default_message = "Invalid pipeline state transition"


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"status": "error", "error": message})


def setup_exception_handlers(app: FastAPI) -> None:
    """Render domain, HTTP and request validation errors with the {status, error} envelope."""

    @app.exception_handler(RoomSparkError)
    async def roomspark_exception_handler(request: Request, exc: RoomSparkError) -> JSONResponse:
        if not exc.is_client_error:
            logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
        return error_response(exc.message, exc.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        response = error_response(str(exc.detail), exc.status_code)
        if getattr(exc, "headers", None):
            response.headers.update(exc.headers)
        return response

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
        return error_response(message, 400)
