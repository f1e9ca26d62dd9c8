import sys
from contextvars import ContextVar

from loguru import logger

from astex.core.config import settings

# Request ID context for correlation tracking
request_id_var: ContextVar[str] = ContextVar("request_id", default="-")


def configure_logging() -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.LOG_LEVEL,
        format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level} | {message} | {extra}",
    )
    if settings.LOG_FILE:
        logger.add(
            settings.LOG_FILE,
            rotation="10 MB",
            retention="14 days",
            level=settings.LOG_LEVEL,
            format="{time} | {level} | {message} | {extra}",
        )


def request_logger():
    """Logger bound to the current request id"""
    return logger.bind(request_id=request_id_var.get())
