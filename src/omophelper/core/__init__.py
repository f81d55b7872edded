"""
Core configuration, logging and errors.
"""

from omophelper.core.config import Settings, get_settings, settings
from omophelper.core.exceptions import (
    ConfigurationError,
    CostlyOperationWarning,
    EmptyResultError,
    NotFoundError,
    OMOPHelperError,
    RemoteOperationError,
)
from omophelper.core.logging import LogContext, get_logger, log_performance

__all__ = [
    "Settings",
    "get_settings",
    "settings",
    "ConfigurationError",
    "CostlyOperationWarning",
    "EmptyResultError",
    "NotFoundError",
    "OMOPHelperError",
    "RemoteOperationError",
    "LogContext",
    "get_logger",
    "log_performance",
]
