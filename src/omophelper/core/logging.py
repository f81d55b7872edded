"""
Structured logging configuration for the OMOP CDM helper.
"""

import functools
import logging
import sys
import time
from typing import Any, Callable, List, Optional

import structlog
from structlog.contextvars import merge_contextvars
from structlog.processors import (
    CallsiteParameter,
    CallsiteParameterAdder,
    JSONRenderer,
    StackInfoRenderer,
    TimeStamper,
    add_log_level,
    format_exc_info,
)
from structlog.stdlib import ProcessorFormatter, add_logger_name
from structlog.typing import Processor

from omophelper.core.config import settings

# Applied to structlog events and to records from plain `logging` alike
SHARED_PROCESSORS: List[Processor] = [
    merge_contextvars,
    add_log_level,
    add_logger_name,
    CallsiteParameterAdder(
        parameters=[
            CallsiteParameter.FILENAME,
            CallsiteParameter.FUNC_NAME,
            CallsiteParameter.LINENO,
        ]
    ),
    TimeStamper(fmt="iso"),
    StackInfoRenderer(),
]


def build_formatter() -> ProcessorFormatter:
    """
    Formatter rendering every record exactly once.

    Production emits JSON lines with formatted tracebacks; other environments
    use the console renderer, which formats exceptions itself.
    """
    if settings.is_production:
        render_chain: List[Processor] = [format_exc_info, JSONRenderer()]
    else:
        render_chain = [structlog.dev.ConsoleRenderer()]

    return ProcessorFormatter(
        foreign_pre_chain=SHARED_PROCESSORS,
        processors=[ProcessorFormatter.remove_processors_meta, *render_chain],
    )


def setup_logging() -> None:
    """Configure structured logging for the helper."""
    structlog.configure(
        processors=[*SHARED_PROCESSORS, ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(build_formatter())

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(getattr(logging, settings.log_level))


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    return structlog.get_logger(name)


class LogContext:
    """Context manager for adding contextual information to logs."""

    def __init__(self, **kwargs: Any):
        """Initialize with context variables."""
        self.context = kwargs
        self.tokens: dict = {}

    def __enter__(self) -> "LogContext":
        """Enter context and bind variables."""
        self.tokens = structlog.contextvars.bind_contextvars(**self.context)
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit context and restore previous values."""
        structlog.contextvars.reset_contextvars(**self.tokens)


def log_performance(operation: str) -> Callable:
    """
    Decorator to log function performance.

    Args:
        operation: Name of the operation being performed
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            logger = get_logger(func.__module__)
            start_time = time.perf_counter()

            try:
                logger.debug(f"{operation} started")
                result = func(*args, **kwargs)
                duration = time.perf_counter() - start_time
                logger.info(
                    f"{operation} completed",
                    duration_ms=round(duration * 1000, 2)
                )
                return result
            except Exception as e:
                duration = time.perf_counter() - start_time
                logger.error(
                    f"{operation} failed",
                    duration_ms=round(duration * 1000, 2),
                    error=str(e)
                )
                raise

        return wrapper

    return decorator


# Initialize logging on module import
setup_logging()
