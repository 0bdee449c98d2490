"""
Request logging middleware with correlation IDs for tracing one pipeline call.

Each request gets a short id (or keeps the caller's X-Request-ID). The id and the
project being worked on live in context variables, so every log line emitted while
serving the request can be tied back to it.
"""
import logging
import time
import uuid
from contextvars import ContextVar
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

REQUEST_ID_HEADER = "X-Request-ID"

# Polling and file downloads would drown out the pipeline logs
QUIET_PATH_PREFIXES = ("/health", "/files/")

request_id_var: ContextVar[str] = ContextVar("request_id", default="")
project_id_var: ContextVar[str] = ContextVar("project_id", default="")

logger = logging.getLogger(__name__)


def get_request_id() -> str:
    return request_id_var.get()


def get_project_id() -> str:
    return project_id_var.get()


def bind_project_id(project_id: str) -> None:
    """Tag subsequent log lines of this request with a project"""
    project_id_var.set(project_id or "")


def context_prefix() -> str:
    prefix = ""
    if get_request_id():
        prefix = f"[{get_request_id()}]"
    if get_project_id():
        prefix += f"[proj:{get_project_id()[:8]}]"
    return prefix


def _incoming_request_id(request: Request) -> str:
    supplied = request.headers.get(REQUEST_ID_HEADER, "").strip()
    if supplied and len(supplied) <= 64:
        return supplied
    return uuid.uuid4().hex[:8]


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Binds request/project ids, logs method, path, status and duration, echoes the id"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = _incoming_request_id(request)
        request_id_var.set(request_id)
        project_id_var.set(request.query_params.get("projectId", ""))

        path = request.url.path
        quiet = path.startswith(QUIET_PATH_PREFIXES)
        started = time.perf_counter()
        if not quiet:
            logger.info(f"[{request_id}] {request.method} {path}", extra={"phase": "request_start", "method": request.method})

        try:
            response = await call_next(request)
        except Exception:
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.exception(
                f"[{request_id}] unhandled error after {elapsed_ms:.0f}ms",
                extra={"phase": "request_error", "duration_ms": round(elapsed_ms)},
            )
            raise

        elapsed_ms = (time.perf_counter() - started) * 1000
        if not quiet or response.status_code >= 400:
            level = logging.INFO if response.status_code < 400 else logging.WARNING
            logger.log(
                level,
                f"[{request_id}] {response.status_code} {request.method} {path} ({elapsed_ms:.0f}ms)",
                extra={"phase": "request_end", "status_code": response.status_code, "duration_ms": round(elapsed_ms)},
            )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class ContextualLogger(logging.LoggerAdapter):
    """Prefixes messages with the current request and project ids"""

    def process(self, msg, kwargs):
        prefix = context_prefix()
        return (f"{prefix} {msg}" if prefix else msg), kwargs


def get_logger(name: str) -> ContextualLogger:
    return ContextualLogger(logging.getLogger(name), {})
