"""
Short Code Generator

Produces random URL-safe short codes. Generation is pure: no database access,
no counter, no shared state, so it is safe to call from any number of
concurrent requests. Uniqueness is enforced by the store on insert; callers
retry with a fresh code on conflict.

With 64 symbols and 8 characters there are 2**48 codes, so a collision only
becomes likely after tens of millions of links.
"""

import secrets
import string

URL_SAFE_ALPHABET = string.ascii_letters + string.digits + "_-"
DEFAULT_CODE_LENGTH = 8


def generate_short_code(length: int = DEFAULT_CODE_LENGTH, alphabet: str = URL_SAFE_ALPHABET) -> str:
    """
    Generate a random short code.

    Args:
        length: Number of characters (default: 8)
        alphabet: Characters to draw from (default: [A-Za-z0-9_-])

    Returns:
        A short code string
    """
    return "".join(secrets.choice(alphabet) for _ in range(length))
