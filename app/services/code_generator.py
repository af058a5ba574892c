"""
Short Code Generator

Produces random fixed-length codes from the 62-character alphanumeric
alphabet. Pure: no I/O and no uniqueness guarantee (see CodeAllocator).

Why random instead of counter-based?
- Codes are not guessable or enumerable from one another
- No shared counter to coordinate
- 62^7 ~ 3.5e12 combinations keeps collisions rare; the allocator
  still handles them
"""

import secrets
import string
from typing import Optional

from app.core.setting import settings

CODE_ALPHABET = string.ascii_letters + string.digits


def generate_code(length: Optional[int] = None) -> str:
    """
    Generate a random short code.

    Args:
        length: Number of characters (default: settings.SHORT_CODE_LENGTH)

    Returns:
        A string of exactly `length` characters from [A-Za-z0-9]

    Raises:
        ValueError: If length is not positive
    """
    if length is None:
        length = settings.SHORT_CODE_LENGTH
    if length <= 0:
        raise ValueError(f"Short code length must be positive, got {length}")
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))
