"""
Error types raised by the Keap API client.

Every failure that crosses the client boundary is a KeapAPIError. The error
keeps enough structure (kind, HTTP status, reason phrase, correlation id) for
logging and tests, while callers that only need a user-facing message can
treat all failures alike.
"""

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Broad category of an API failure."""

    AUTH = "auth"
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    RATE_LIMIT = "rate_limit"
    SERVER = "server"
    NETWORK = "network"
    UNKNOWN = "unknown"

    @classmethod
    def from_status(cls, status_code: Optional[int]) -> "ErrorKind":
        """
        Classify an HTTP status code.

        Args:
            status_code: HTTP status, or None when no response was received

        Returns:
            The matching ErrorKind
        """
        if status_code is None:
            return cls.NETWORK
        if status_code in (401, 403):
            return cls.AUTH
        if status_code == 404:
            return cls.NOT_FOUND
        if status_code in (400, 409, 422):
            return cls.VALIDATION
        if status_code == 429:
            return cls.RATE_LIMIT
        if status_code >= 500:
            return cls.SERVER
        return cls.UNKNOWN


class KeapAPIError(Exception):
    """Raised when a Keap API operation fails."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        reason: Optional[str] = None,
        kind: Optional[ErrorKind] = None,
        correlation_id: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason
        self.kind = kind if kind is not None else ErrorKind.from_status(status_code)
        self.correlation_id = correlation_id

    def describe(self) -> str:
        """One-line diagnostic summary for log output."""
        status = self.status_code if self.status_code is not None else "-"
        return (
            f"kind={self.kind.value} status={status} "
            f"correlation_id={self.correlation_id or '-'}: {self}"
        )


class RateLimitError(KeapAPIError):
    """Raised when rate limit is exceeded and retries are exhausted."""

    pass
