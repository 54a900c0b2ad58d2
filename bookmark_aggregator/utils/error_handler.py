"""
Exception hierarchy for the bookmark aggregator.

All custom exceptions are defined here and imported from
bookmark_aggregator.utils.error_handler.
"""

from typing import Optional


# ============================================================================
# Base Error
# ============================================================================


class AggregatorError(Exception):
    """
    Base exception for all bookmark aggregator errors.

    Attributes:
        message: Human-readable error message
        source_name: Name of the adapter involved, if any
        original_error: The underlying exception that caused this error
    """

    def __init__(
        self,
        message: str,
        source_name: Optional[str] = None,
        original_error: Optional[Exception] = None,
    ):
        self.message = message
        self.source_name = source_name
        self.original_error = original_error
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = []
        if self.source_name:
            parts.append(f"[{self.source_name}]")
        parts.append(self.message)
        if self.original_error:
            parts.append(f"(Caused by: {self.original_error})")
        return " ".join(parts)


# ============================================================================
# Lookup Errors
# ============================================================================


class NotFoundError(AggregatorError):
    """A requested source, renderer or profile does not exist."""

    pass


class InvalidFormatError(NotFoundError):
    """The requested output format has no registered renderer."""

    pass


class UnavailableError(AggregatorError):
    """A source exists but its backing data is not present."""

    pass


# ============================================================================
# Read / Render Errors
# ============================================================================


class ReadFailureError(AggregatorError):
    """A source failed while reading its bookmarks."""

    pass


class EmptyResultError(AggregatorError):
    """No bookmarks were collected from any source."""

    pass


class RenderError(AggregatorError):
    """A renderer failed to produce output."""

    pass


# ============================================================================
# Configuration Errors
# ============================================================================


class ConfigInvalidError(AggregatorError):
    """An adapter rejected the options it was configured with."""

    pass


class ConfigurationError(AggregatorError):
    """The configuration file could not be loaded or validated."""

    pass


# ============================================================================
# Protocol Errors
# ============================================================================


class ProtocolError(AggregatorError):
    """Base class for errors reported to protocol server callers."""

    code = -32603


class MethodNotFoundError(ProtocolError):
    """The requested JSON-RPC method is not supported."""

    code = -32601


class InvalidParamsError(ProtocolError):
    """Request parameters are malformed or name an unknown tool."""

    code = -32602


class ProtocolInternalError(ProtocolError):
    """The server failed while handling a well-formed request."""

    code = -32603


__all__ = [
    "AggregatorError",
    "NotFoundError",
    "InvalidFormatError",
    "UnavailableError",
    "ReadFailureError",
    "EmptyResultError",
    "RenderError",
    "ConfigInvalidError",
    "ConfigurationError",
    "ProtocolError",
    "MethodNotFoundError",
    "InvalidParamsError",
    "ProtocolInternalError",
]
