"""Environment-driven logging setup for the serverless functions."""

import os
import logging
import sys
from pythonjsonlogger import jsonlogger

SERVICE_NAME = "vesta-operations"

# Third-party loggers that chatter at INFO on every PostgREST request
QUIET_LOGGERS = ("httpx", "httpcore", "hpack", "supabase", "postgrest")


class ServiceFilter(logging.Filter):
    """Stamp the service name and environment on every record."""

    def __init__(self, environment: str):
        super().__init__()
        self.environment = environment

    def filter(self, record: logging.LogRecord) -> bool:
        record.service = SERVICE_NAME
        record.environment = self.environment
        return True


class LoggingConfig:
    """Logging settings read from the environment at import time."""

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
    LOG_FORMAT = os.environ.get("LOG_FORMAT", "json").lower()
    LOG_CORRELATION_ID_HEADER = os.environ.get("LOG_CORRELATION_ID_HEADER", "X-Correlation-ID")
    LOG_SLOW_OPERATION_THRESHOLD_MS = int(os.environ.get("LOG_SLOW_OPERATION_THRESHOLD_MS", "1000"))
    ENVIRONMENT = os.environ.get("ENVIRONMENT", "production")

    @classmethod
    def level(cls) -> int:
        return getattr(logging, cls.LOG_LEVEL, logging.INFO)

    @classmethod
    def build_formatter(cls) -> logging.Formatter:
        if cls.LOG_FORMAT == "json":
            return jsonlogger.JsonFormatter(
                "%(timestamp)s %(levelname)s %(name)s %(service)s %(message)s",
                timestamp=True
            )
        return logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )

    @classmethod
    def setup_logging(cls) -> None:
        """Replace root handlers with a single stdout handler (Vercel collects stdout)."""
        root_logger = logging.getLogger()
        root_logger.setLevel(cls.level())
        root_logger.handlers.clear()

        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(cls.level())
        handler.setFormatter(cls.build_formatter())
        handler.addFilter(ServiceFilter(cls.ENVIRONMENT))
        root_logger.addHandler(handler)

        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
