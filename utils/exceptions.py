"""Afterlink error taxonomy.

Every failure surfaced to a caller of the client is one of:
- ResponseTimeout: no qualifying reply arrived within the polling budget
- ParseFailure / NoJsonFound: reply text did not decode into the expected shape
- UpstreamError / NotFound: the decoded reply explicitly carried an ``error``
- TransportError: the chat channel itself failed (HTTP errors, closed client)
- GenerationError: the text-generation provider call failed
"""

from typing import Optional


class AfterlinkError(Exception):
    """Base error for the Afterlink client and backend."""

    error_code = "AFTERLINK_ERROR"
    retryable = False

    def __init__(self, message: str, details: Optional[str] = None):
        """
        Args:
            message: User-facing error message
            details: Optional internal/debug details
        """
        self.message = message
        self.details = details
        super().__init__(message)


class TransportError(AfterlinkError):
    """Raised when the chat channel cannot be reached or used."""

    error_code = "TRANSPORT_ERROR"


class ResponseTimeout(AfterlinkError):
    """Raised when no qualifying reply is found within the attempt budget."""

    error_code = "TIMEOUT"
    retryable = True

    def __init__(self, message: str = "Timeout waiting for bot response", details: Optional[str] = None):
        super().__init__(message, details)


class ParseFailure(AfterlinkError):
    """Raised when a reply contains JSON that cannot be decoded as expected."""

    error_code = "PARSE_FAILURE"


class NoJsonFound(ParseFailure):
    """Raised when a reply contains no JSON span at all."""

    error_code = "NO_JSON"


class UpstreamError(AfterlinkError):
    """Raised when the backend reply carries an explicit ``error`` field."""

    error_code = "UPSTREAM_ERROR"


class NotFound(UpstreamError):
    """Raised when a requested article or lead does not exist."""

    error_code = "NOT_FOUND"

    def __init__(self, message: str = "Resource not found", details: Optional[str] = None):
        super().__init__(message, details)


class GenerationError(AfterlinkError):
    """Raised when the text-generation provider call fails."""

    error_code = "GENERATION_ERROR"
