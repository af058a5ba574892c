"""
Input Validators and Sanitizers

This module provides validation and sanitization functions for user inputs.
These functions help prevent security issues and ensure data integrity.

Security Considerations:
- Only http/https targets are accepted (no javascript:, data:, file: redirects)
- Short codes are restricted to a URL-safe alphabet
- Length limits prevent DoS attacks
"""

import re
from typing import Optional

from pydantic import HttpUrl, TypeAdapter, ValidationError

from app.core.setting import settings

HTTP_URL_ADAPTER = TypeAdapter(HttpUrl)

# Custom codes may also use '-' and '_' (e.g. "spring-sale"); generated codes never do
CUSTOM_CODE_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")

# First path segments served by the application itself; a link stored under
# one of these would be shadowed by the route and never redirect
RESERVED_CODES = frozenset({"api", "docs", "redoc", "health"})


def is_valid_url(url: str, max_length: Optional[int] = None) -> bool:
    """
    Validate a target URL before it is persisted.

    Accepts any absolute http/https URL pydantic's HttpUrl can parse
    (hostnames, IPv4/IPv6 literals, ports) that fits the configured length.

    Args:
        url: The URL string to validate
        max_length: Maximum allowed length (default: settings.MAX_URL_LENGTH)

    Returns:
        True if valid and safe, False otherwise
    """
    if not url or not isinstance(url, str):
        return False

    if not validate_url_length(url, max_length):
        return False

    try:
        HTTP_URL_ADAPTER.validate_python(url)
    except ValidationError:
        return False

    return True


def validate_url_length(url: str, max_length: Optional[int] = None) -> bool:
    """
    Validate URL length to prevent DoS attacks.

    Args:
        url: The URL to validate
        max_length: Maximum allowed length (default: settings.MAX_URL_LENGTH)

    Returns:
        True if URL length is valid, False otherwise
    """
    limit = settings.MAX_URL_LENGTH if max_length is None else max_length
    return bool(url) and len(url) <= limit


def is_valid_custom_code(
    short_code: str,
    min_length: Optional[int] = None,
    max_length: Optional[int] = None,
) -> bool:
    """
    Check a caller-supplied short code against the length and alphabet rules.

    Args:
        short_code: Requested code
        min_length: Shortest accepted code (default: settings.MIN_CUSTOM_CODE_LENGTH)
        max_length: Longest accepted code (default: settings.MAX_CUSTOM_CODE_LENGTH)
    """
    if not short_code or not isinstance(short_code, str):
        return False

    lower = settings.MIN_CUSTOM_CODE_LENGTH if min_length is None else min_length
    upper = settings.MAX_CUSTOM_CODE_LENGTH if max_length is None else max_length
    if not lower <= len(short_code) <= upper:
        return False

    return CUSTOM_CODE_PATTERN.match(short_code) is not None


def is_reserved_code(short_code: str) -> bool:
    """True if `short_code` collides with one of the application's own routes."""
    return short_code in RESERVED_CODES


def sanitize_short_code(short_code: str) -> Optional[str]:
    """
    Sanitize and validate a short code taken from a request path.

    Accepts anything that could have been allocated: generated codes and
    custom codes alike.

    Args:
        short_code: The short code to sanitize

    Returns:
        Sanitized short code if valid, None otherwise

    Security:
    - Only allows [A-Za-z0-9_-]
    - Prevents path traversal attacks
    """
    if not short_code or not isinstance(short_code, str):
        return None

    short_code = short_code.strip()

    if len(short_code) > max(settings.MAX_CUSTOM_CODE_LENGTH, settings.SHORT_CODE_LENGTH):
        return None

    if not CUSTOM_CODE_PATTERN.match(short_code):
        return None

    return short_code


def clean_title(title: Optional[str], max_length: Optional[int] = None) -> Optional[str]:
    """Collapse whitespace in a link title; blank titles become None."""
    if title is None:
        return None

    cleaned = " ".join(title.split())
    if not cleaned:
        return None

    limit = settings.MAX_TITLE_LENGTH if max_length is None else max_length
    if len(cleaned) > limit:
        raise ValueError(f"Title must be at most {limit} characters")
    return cleaned
