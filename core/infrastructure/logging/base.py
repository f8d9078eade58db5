import logging
import sys
from functools import lru_cache

from loguru import logger

from config.base import get_settings

from .context import request_context
from .format import CustomLogFormat


class InterceptHandler(logging.Handler):
    """Intercept standard Python logging records and redirect them to Loguru.

    Ensures that logs from third-party libraries (uvicorn, SQLAlchemy,
    websockets) are processed by Loguru with the same formatting and request
    context enrichment as application logs.
    """

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


def _is_noise(record) -> bool:
    return (
        "changes detected" in record["message"]
        or record["function"] == "callHandlers"
    )


@lru_cache(maxsize=1)
def setup_logging() -> None:
    """Configure Loguru to handle application logging with multiple sinks.

    Sets up console logging (stdout), a rotating JSON file sink, and a separate
    file for error-level logs. Intercepts standard logging and injects request
    context information into log records.
    """
    settings = get_settings()
    settings.logs_dir.mkdir(parents=True, exist_ok=True)

    logger.remove()

    logging.root.handlers = [InterceptHandler()]
    logging.root.setLevel(settings.logging_level)

    for name in logging.root.manager.loggerDict.keys():
        logging.getLogger(name).handlers = []
        logging.getLogger(name).propagate = True

    def context_patcher(record):
        record["extra"].update(request_context.get({}))

    is_development_server = settings.is_development

    handlers_config = [
        {
            "backtrace": False,
            "colorize": is_development_server,
            "diagnose": is_development_server,
            "filter": lambda record: (
                record["extra"].get("target") != "file" and not _is_noise(record)
            ),
            "format": lambda record: CustomLogFormat(record=record).log_console_format(),
            "level": settings.logging_level,
            "serialize": not is_development_server,
            "sink": sys.stdout,
        },
        {
            "backtrace": True,
            "colorize": False,
            "compression": "zip",
            "diagnose": False,
            "enqueue": True,
            "filter": lambda record: not _is_noise(record),
            "format": lambda record: CustomLogFormat(record=record).log_file_format(),
            "level": "INFO",
            "retention": "10 days",
            "rotation": "10 MB",
            "serialize": True,
            "sink": settings.log_file,
        },
        {
            "backtrace": True,
            "colorize": False,
            "compression": "zip",
            "diagnose": False,
            "enqueue": True,
            "format": lambda record: CustomLogFormat(record=record).log_file_format(),
            "level": "ERROR",
            "retention": "60 days",
            "rotation": "10 MB",
            "serialize": True,
            "sink": str(settings.log_file).replace(".log", "_errors.log"),
        },
    ]

    logger.configure(handlers=handlers_config, patcher=context_patcher)
