"""
Logging configuration for the API.

Modules log through the standard library:

    import logging
    logger = logging.getLogger(__name__)

Records are rendered by structlog's ProcessorFormatter, so stdlib and structlog
loggers produce the same output (timestamp, level, logger name and, inside a
request, request_id and project_id). Route handlers and the pipeline can also use
`middleware.logging_middleware.get_logger`, which prefixes the ids into the message
text for the console renderer.
"""
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

import structlog

from roomspark.core.config import Settings
from roomspark.core.config import settings as default_settings
from roomspark.middleware.logging_middleware import get_project_id, get_request_id

# Third-party loggers that are only interesting when they fail
NOISY_LOGGERS = (
    "uvicorn.access",
    "uvicorn.error",
    "httpx",
    "httpcore",
    "aiohttp.access",
    "openai",
    "replicate",
    "google_genai",
    "sqlalchemy.engine",
    "PIL",
)

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024  # 10MB


def add_request_context(logger, method_name, event_dict):
    """Attach the ids bound by RequestLoggingMiddleware and the pipeline"""
    request_id = get_request_id()
    if request_id:
        event_dict.setdefault("request_id", request_id)
    project_id = get_project_id()
    if project_id:
        event_dict.setdefault("project_id", project_id)
    return event_dict


def _build_formatter(log_format: str) -> structlog.stdlib.ProcessorFormatter:
    pre_chain = [
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.ExtraAdder(),
        structlog.processors.TimeStamper(fmt="iso"),
        add_request_context,
    ]

    if log_format == "json":
        final = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        final = [structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty(), exception_formatter=structlog.dev.plain_traceback)]

    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=pre_chain,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, *final],
    )


def _rotating_handler(path: Path, level: int, formatter: logging.Formatter) -> RotatingFileHandler:
    handler = RotatingFileHandler(path, maxBytes=LOG_FILE_MAX_BYTES, backupCount=5)
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(config: Settings = None):
    """Configure structlog and the root logger; safe to call more than once."""
    config = config or default_settings
    log_level = getattr(logging, config.log_level.upper(), logging.INFO)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            add_request_context,
            structlog.processors.StackInfoRenderer(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = _build_formatter(config.log_format)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = []

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if config.environment == "production":
        log_dir = Path("logs")
        log_dir.mkdir(exist_ok=True)
        # JSON on disk regardless of the console format
        file_formatter = _build_formatter("json")
        root_logger.addHandler(_rotating_handler(log_dir / "roomspark.log", logging.DEBUG, file_formatter))
        root_logger.addHandler(_rotating_handler(log_dir / "roomspark_errors.log", logging.ERROR, file_formatter))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        f"Logging configured: level={config.log_level}, format={config.log_format}, env={config.environment}"
    )
