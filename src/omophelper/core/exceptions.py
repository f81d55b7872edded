"""
Error taxonomy for the OMOP CDM helper.
"""

from typing import Optional


class OMOPHelperError(Exception):
    """Base class for every error raised by the helper."""
    pass


class ConfigurationError(OMOPHelperError, ValueError):
    """Raised when arguments or settings are inconsistent (e.g. half a link column pair)."""
    pass


class EmptyResultError(OMOPHelperError):
    """Raised when the requested filters exclude every row of a table."""
    pass


class RemoteOperationError(OMOPHelperError):
    """Raised when a fetch, merge or removal fails on the remote side."""

    def __init__(self, message: str, server: Optional[str] = None):
        super().__init__(message)
        self.server = server


class NotFoundError(OMOPHelperError):
    """Raised when a catalog query resolves to nothing on the entire federation."""
    pass


class CostlyOperationWarning(UserWarning):
    """Advisory emitted when table, column or concept filters are omitted."""
    pass
