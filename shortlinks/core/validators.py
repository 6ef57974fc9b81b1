"""
Input Validators and Sanitizers

This module provides validation and sanitization functions for user inputs.
These functions help prevent security issues and ensure data integrity.

Security Considerations:
- Input validation prevents injection attacks
- Length limits prevent DoS attacks
"""

import re
from datetime import datetime, timezone
from typing import Optional, Union

MAX_SHORT_CODE_LENGTH = 32

# Same alphabet the code generator draws from: [A-Za-z0-9_-]
SHORT_CODE_PATTERN = re.compile(r'^[A-Za-z0-9_-]+$')


def sanitize_short_code(short_code: str) -> Optional[str]:
    """
    Sanitize and validate short code format.

    Short codes may only contain URL-safe characters: [A-Za-z0-9_-]
    This prevents injection attacks and ensures consistency.

    Args:
        short_code: The short code to sanitize

    Returns:
        Sanitized short code if valid, None otherwise
    """
    if not short_code or not isinstance(short_code, str):
        return None

    short_code = short_code.strip()

    if not short_code or len(short_code) > MAX_SHORT_CODE_LENGTH:
        return None

    if not SHORT_CODE_PATTERN.match(short_code):
        return None

    return short_code


def validate_url_length(url: str, max_length: int = 2048) -> bool:
    """
    Validate URL length to prevent DoS attacks.

    Args:
        url: The URL to validate
        max_length: Maximum allowed length (default: 2048 per RFC 7230)

    Returns:
        True if URL length is valid, False otherwise
    """
    return bool(url) and len(url) <= max_length


def to_naive_utc(value: datetime) -> datetime:
    """Normalize a datetime to naive UTC, the form every timestamp is stored in."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def parse_timestamp(value: Union[str, datetime, None]) -> Optional[datetime]:
    """
    Parse an ISO-8601 string (or pass through a datetime) as naive UTC.

    Naive input is taken as UTC. A trailing "Z" is accepted.

    Returns:
        The parsed timestamp, or None if the value cannot be parsed or
        falls outside the representable range once shifted to UTC
    """
    if isinstance(value, str):
        if not value.strip():
            return None
        try:
            value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    if not isinstance(value, datetime):
        return None
    try:
        return to_naive_utc(value)
    except OverflowError:
        # e.g. 9999-12-31T23:59:59-14:00 lands in year 10000
        return None
