"""Logging configuration for Formvault application"""
import logging
import sys

from src.infrastructure.config.settings import get_settings
from src.shared.context import get_request_context

LOG_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - "
    "[%(correlation_id)s tenant=%(tenant_id)s] %(message)s"
)


class RequestContextFilter(logging.Filter):
    """Stamp every record with the current correlation id and tenant id"""

    def filter(self, record: logging.LogRecord) -> bool:
        ctx = get_request_context()
        record.correlation_id = ctx.correlation_id or "-"
        record.tenant_id = ctx.tenant_id or "-"
        return True


def setup_logging():
    """Configure application-wide logging"""
    settings = get_settings()
    log_level = logging.DEBUG if settings.debug else logging.INFO

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestContextFilter())

    logging.basicConfig(
        level=log_level,
        format=LOG_FORMAT,
        handlers=[handler],
        force=True,
    )

    # Set library log levels to reduce noise
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get logger for module"""
    return logging.getLogger(name)
