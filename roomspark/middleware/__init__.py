"""
Middleware package for the API.
"""
from roomspark.middleware.logging_middleware import (
    ContextualLogger,
    RequestLoggingMiddleware,
    bind_project_id,
    get_logger,
    get_project_id,
    get_request_id,
)

__all__ = [
    "RequestLoggingMiddleware",
    "ContextualLogger",
    "bind_project_id",
    "get_logger",
    "get_project_id",
    "get_request_id",
]
