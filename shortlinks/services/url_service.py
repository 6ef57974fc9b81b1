"""
URL Shortening Service

This service handles the core business logic for URL shortening:
- Validating the target URL and the optional expiration
- Accepting a caller-chosen custom code, or generating a random one
- Inserting the mapping with collision retry

Design Decisions:
- Random codes instead of a counter: no central sequence to coordinate,
  uniqueness comes from the primary key on insert
- Custom codes are tried exactly once; a conflict is the caller's to resolve
- Generated codes are retried a bounded number of times, then the request
  fails loudly instead of looping
- All validation runs before the store is touched, so rejected requests
  never mutate anything
"""

import ipaddress
import logging
from datetime import datetime
from typing import Callable, Optional, Union
from urllib.parse import urlparse

from sqlalchemy.ext.asyncio import AsyncSession

from shortlinks.core.clock import utcnow
from shortlinks.core.exceptions import (
    CodeGenerationExhaustedError,
    InvalidExpiryError,
    InvalidShortCodeError,
    InvalidURLError,
    ShortCodeTakenError,
)
from shortlinks.core.identity import Identity
from shortlinks.core.setting import settings
from shortlinks.core.validators import parse_timestamp, sanitize_short_code, validate_url_length
from shortlinks.db.models import ShortLink
from shortlinks.services.code_generator import generate_short_code
from shortlinks.services.link_store import LinkStore

logger = logging.getLogger(__name__)

MAX_URL_LENGTH = 2048
ALLOWED_SCHEMES = {'http', 'https'}


def _is_ip_literal(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return False
    return True


def is_valid_url(url: str) -> bool:
    """
    Validate URL format and security.

    Checks that URL is absolute, uses http/https and has a usable host.
    Only the scheme is restricted, so javascript:, data: and file: URLs are
    rejected while paths and queries may contain any text.

    Args:
        url: The URL string to validate

    Returns:
        True if valid and safe, False otherwise
    """
    if not isinstance(url, str) or not validate_url_length(url, MAX_URL_LENGTH):
        return False

    if url != url.strip() or any(ch.isspace() for ch in url):
        return False

    try:
        result = urlparse(url)
        host = result.hostname
        # Accessing .port validates it (raises ValueError when out of range)
        result.port
    except ValueError:
        return False

    if not result.scheme or not result.netloc or not host:
        return False

    if result.scheme.lower() not in ALLOWED_SCHEMES:
        return False

    if host != 'localhost' and '.' not in host and not _is_ip_literal(host):
        return False

    return True


class URLShorteningService:
    """
    Core business logic for URL shortening.

    Handles URL validation, code selection and the insert. Separated from the
    API layer for testability.
    """

    def __init__(
        self,
        session: AsyncSession,
        code_generator: Optional[Callable[[], str]] = None,
        max_attempts: Optional[int] = None,
    ):
        """
        Initialize the URL shortening service.

        Args:
            session: Database session
            code_generator: Zero-argument callable returning a candidate code
                (defaults to random codes of SHORT_CODE_LENGTH characters)
            max_attempts: Generated codes to try before giving up
                (defaults to SHORT_CODE_MAX_ATTEMPTS)
        """
        self.store = LinkStore(session)
        self.code_generator = code_generator or (
            lambda: generate_short_code(settings.SHORT_CODE_LENGTH)
        )
        self.max_attempts = max(1, max_attempts or settings.SHORT_CODE_MAX_ATTEMPTS)

    @staticmethod
    def validate_expiry(
        expires_at: Union[str, datetime, None],
        now: datetime,
    ) -> Optional[datetime]:
        """
        Parse an optional expiration and check it lies strictly after ``now``.

        Raises:
            InvalidExpiryError: If the value can't be parsed or is not in the future
        """
        if expires_at is None:
            return None

        parsed = parse_timestamp(expires_at)
        if parsed is None:
            raise InvalidExpiryError(expires_at, reason="Expiration must be an ISO-8601 timestamp")
        if parsed <= now:
            raise InvalidExpiryError(expires_at, reason="Expiration must be in the future")
        return parsed

    async def shorten(
        self,
        original_url: str,
        owner: Identity,
        custom_code: Optional[str] = None,
        expires_at: Union[str, datetime, None] = None,
    ) -> ShortLink:
        """
        Create a new short link.

        Args:
            original_url: The long URL to shorten
            owner: Identity that will own the link
            custom_code: Caller-chosen code; tried once, never retried
            expires_at: Optional expiration (ISO-8601 string or datetime)

        Returns:
            The stored ShortLink

        Raises:
            InvalidURLError: If URL format is invalid
            InvalidExpiryError: If expiration is unparseable or not in the future
            InvalidShortCodeError: If the custom code has a bad format
            ShortCodeTakenError: If the custom code is already in use
            CodeGenerationExhaustedError: If every generated code collided
            StoreUnavailableError: If the database operation fails
        """
        if not is_valid_url(original_url):
            raise InvalidURLError(
                original_url,
                reason="Invalid URL format. URL must use http:// or https:// and have a valid domain"
            )

        now = utcnow()
        expiry = self.validate_expiry(expires_at, now)

        if custom_code is not None:
            code = sanitize_short_code(custom_code)
            if code is None or code != custom_code:
                raise InvalidShortCodeError(custom_code)
            link = await self.store.insert(self._build(code, original_url, owner, now, expiry))
            logger.info(f"Created custom short code {code} for owner {owner}")
            return link

        for attempt in range(1, self.max_attempts + 1):
            code = self.code_generator()
            try:
                link = await self.store.insert(self._build(code, original_url, owner, now, expiry))
            except ShortCodeTakenError:
                logger.warning(
                    f"Generated short code {code} collided (attempt {attempt}/{self.max_attempts})"
                )
                continue
            logger.info(f"Created short code {code} for owner {owner}")
            return link

        logger.error(
            f"Short code generation exhausted after {self.max_attempts} attempts; "
            "code space may be nearly full or the generator is broken"
        )
        raise CodeGenerationExhaustedError(self.max_attempts)

    @staticmethod
    def _build(
        code: str,
        original_url: str,
        owner: Identity,
        now: datetime,
        expiry: Optional[datetime],
    ) -> ShortLink:
        return ShortLink(
            code=code,
            original_url=original_url,
            owner_id=owner.user_id,
            created_at=now,
            expires_at=expiry,
            click_count=0,
        )
