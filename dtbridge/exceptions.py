"""dtbridge exception hierarchy.

All dtbridge-specific exceptions inherit from DataTablesException, enabling
catch-all handling while supporting specific error types.
"""

from __future__ import annotations

from typing import Any


class DataTablesException(Exception):
    """Base exception for all dtbridge errors."""

    def __init__(self, message: str, **context: Any) -> None:
        """Initialize dtbridge exception.

        Parameters
        ----------
        message : str
            Human-readable error message.
        **context : Any
            Additional context (tag_id, start, length, etc.).
        """
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        """Format exception with context."""
        if self.context:
            ctx = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx})"
        return self.message


class ConfigurationError(DataTablesException):
    """The script builder is missing required configuration.

    Raised before any script is produced; there is no partial rendering.
    """


class MissingColumnsError(ConfigurationError):
    """No column descriptors were configured for the datatable."""


class MissingColumnRendersError(ConfigurationError):
    """Column render compilation produced no output."""


class InvalidPagingError(DataTablesException):
    """Paging parameters cannot be turned into a page number.

    Raised for a zero page length with a non-zero offset, negative offsets,
    and values that are not integers.
    """

    def __init__(
        self,
        message: str,
        start: Any = None,
        length: Any = None,
        **context: Any,
    ) -> None:
        """Initialize paging error.

        Parameters
        ----------
        message : str
            Human-readable error message.
        start : Any, optional
            The offset the client sent.
        length : Any, optional
            The page length the client sent.
        **context : Any
            Additional context.
        """
        super().__init__(message, start=start, length=length, **context)
        self.start = start
        self.length = length
