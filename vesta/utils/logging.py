"""
Request-scoped structured logging.

Every record logged through a StructuredLogger carries the correlation id
and tenant (account id) of the request being served, plus any keyword
fields passed by the caller.
"""

import inspect
import logging
import time
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Callable, Dict, Iterator, Optional

from vesta.utils.logging_config import LoggingConfig, get_logger


_correlation_id_var: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)
_account_id_var: ContextVar[Optional[int]] = ContextVar('account_id', default=None)


def generate_correlation_id() -> str:
    """New request id, used when the caller sent none."""
    return f"req_{uuid.uuid4().hex[:12]}"


def get_correlation_id() -> Optional[str]:
    return _correlation_id_var.get()


def get_account_id() -> Optional[int]:
    """Tenant of the request being served, if resolved."""
    return _account_id_var.get()


@contextmanager
def correlation_context(correlation_id: Optional[str] = None) -> Iterator[str]:
    """Bind a correlation id (generated when missing) for the enclosed block."""
    token = _correlation_id_var.set(correlation_id or generate_correlation_id())
    try:
        yield _correlation_id_var.get()
    finally:
        _correlation_id_var.reset(token)


@contextmanager
def tenant_context(account_id: int) -> Iterator[int]:
    """Bind the tenant so every log line of the block is attributable to it."""
    token = _account_id_var.set(account_id)
    try:
        yield account_id
    finally:
        _account_id_var.reset(token)


class StructuredLogger:
    """Logger wrapper that turns keyword arguments into structured fields."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def _fields(self, kwargs: Dict[str, Any]) -> Dict[str, Any]:
        fields: Dict[str, Any] = {"timestamp": datetime.now(timezone.utc).isoformat()}
        request_id = _correlation_id_var.get()
        if request_id:
            fields["correlation_id"] = request_id
        tenant = _account_id_var.get()
        if tenant is not None:
            fields["account_id"] = tenant
        # Explicit keyword fields win over the bound request context
        fields.update(kwargs)
        return fields

    def _log(self, level: int, message: str, kwargs: Dict[str, Any], exc_info: bool = False) -> None:
        if self.logger.isEnabledFor(level):
            self.logger.log(level, message, extra=self._fields(kwargs), exc_info=exc_info)

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, exc_info: bool = False, **kwargs: Any) -> None:
        self._log(logging.ERROR, message, kwargs, exc_info=exc_info)


def get_structured_logger(name: str) -> StructuredLogger:
    return StructuredLogger(get_logger(name))


@contextmanager
def log_timing(operation_name: str, logger: Optional[StructuredLogger] = None, **context: Any):
    """
    Log how long the enclosed block took.

    The duration is logged even when the block raises; blocks slower than
    LOG_SLOW_OPERATION_THRESHOLD_MS also get a warning.
    """
    log = logger or get_structured_logger(__name__)
    threshold_ms = LoggingConfig.LOG_SLOW_OPERATION_THRESHOLD_MS
    started = time.perf_counter()
    log.debug(f"{operation_name} started", operation=operation_name, **context)

    try:
        yield
    finally:
        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        log.info(f"{operation_name} finished", operation=operation_name,
                 processing_time_ms=elapsed_ms, **context)
        if elapsed_ms > threshold_ms:
            log.warning(f"{operation_name} exceeded {threshold_ms}ms", operation=operation_name,
                        processing_time_ms=elapsed_ms, threshold_ms=threshold_ms, **context)


def timed(operation_name: Optional[str] = None, logger: Optional[StructuredLogger] = None):
    """Decorator form of log_timing for plain functions and coroutines."""
    def decorator(func: Callable) -> Callable:
        name = operation_name or f"{func.__module__}.{func.__name__}"
        log = logger or get_structured_logger(func.__module__)

        if inspect.iscoroutinefunction(func):
            @wraps(func)
            async def run_async(*args, **kwargs):
                with log_timing(name, logger=log):
                    return await func(*args, **kwargs)
            return run_async

        @wraps(func)
        def run(*args, **kwargs):
            with log_timing(name, logger=log):
                return func(*args, **kwargs)
        return run

    return decorator


def setup_logging() -> logging.Logger:
    """Configure the root handler and return the package logger."""
    LoggingConfig.setup_logging()
    return get_logger("vesta")
