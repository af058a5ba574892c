"""
Custom Exceptions

This module defines the closed set of error conditions the shortener core
can report. Every exception carries an ErrorKind so the API boundary can map
each one onto a transport status without string matching.

Benefits:
- More specific error types for different failure scenarios
- Better error messages for API consumers
- Exhaustive status mapping at the API layer (see app.api.errors)
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Tag carried by every URLShortenerException subclass."""
    INVALID_URL = "invalid_url"
    INVALID_CODE = "invalid_code"
    INVALID_EXPIRY = "invalid_expiry"
    CONFLICT = "conflict"
    ALLOCATION_EXHAUSTED = "allocation_exhausted"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    RATE_LIMITED = "rate_limited"
    DATABASE = "database"


class URLShortenerException(Exception):
    """Base exception for URL shortener service."""
    kind: ErrorKind


class InvalidURLError(URLShortenerException):
    """Raised when URL validation fails."""
    kind = ErrorKind.INVALID_URL

    def __init__(self, url: str, reason: str = "Invalid URL format"):
        self.url = url
        self.reason = reason
        super().__init__(f"{reason}: {url}")


class InvalidCodeError(URLShortenerException):
    """Raised when a caller-supplied short code breaks the format rules."""
    kind = ErrorKind.INVALID_CODE

    def __init__(self, short_code: str, reason: str = "Invalid short code format"):
        self.short_code = short_code
        self.reason = reason
        super().__init__(f"{reason}: '{short_code}'")


class InvalidExpiryError(URLShortenerException):
    """Raised when a requested link lifetime is not a positive, bounded number of hours."""
    kind = ErrorKind.INVALID_EXPIRY

    def __init__(self, ttl_hours: int, max_hours: int):
        self.ttl_hours = ttl_hours
        self.max_hours = max_hours
        super().__init__(f"Expiry must be between 1 and {max_hours} hours, got {ttl_hours}")


class CodeConflictError(URLShortenerException):
    """Raised when a requested short code is already allocated."""
    kind = ErrorKind.CONFLICT

    def __init__(self, short_code: str):
        self.short_code = short_code
        super().__init__(f"Short code '{short_code}' already exists")


class AllocationExhaustedError(URLShortenerException):
    """
    Raised when no free code was found within the generation budget.

    Signals a saturated code space or a misbehaving store; it is an operator
    problem, not a user error.
    """
    kind = ErrorKind.ALLOCATION_EXHAUSTED

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"Failed to generate a unique short code after {attempts} attempts")


class ShortCodeNotFoundError(URLShortenerException):
    """Raised when a short code does not resolve to a live link."""
    kind = ErrorKind.NOT_FOUND

    def __init__(self, short_code: str):
        self.short_code = short_code
        super().__init__(f"Short code '{short_code}' not found")


class ForbiddenError(URLShortenerException):
    """Raised when a requester may not modify a link owned by someone else."""
    kind = ErrorKind.FORBIDDEN

    def __init__(self, short_code: str):
        self.short_code = short_code
        super().__init__(f"You don't have permission to delete '{short_code}'")


class RateLimitedError(URLShortenerException):
    """Raised when a client key exceeded its request budget for the window."""
    kind = ErrorKind.RATE_LIMITED

    def __init__(self, key: str, retry_after: Optional[float] = None):
        self.key = key
        self.retry_after = retry_after
        super().__init__("Too many requests")


class DatabaseError(URLShortenerException):
    """Raised when database operations fail."""
    kind = ErrorKind.DATABASE

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.original_error = original_error
        super().__init__(f"Database error: {message}")
