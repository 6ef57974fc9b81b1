"""
Redirect Service

This service resolves a short code to its redirect target.

Every resolution ends in exactly one state:
- RESOLVED: the link exists and is live; its click was counted
- NOT_FOUND: no link has this code; nothing changed
- EXPIRED: the link exists but its expiration has passed; nothing changed

Missing and expired links are normal outcomes, so they come back as values
rather than exceptions. Expiration is judged at read time; expired rows are
left in place (see shortlinks.core.sweeper for the optional purge).
"""

import enum
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from shortlinks.core.clock import utcnow
from shortlinks.core.validators import sanitize_short_code
from shortlinks.services.link_store import LinkStore

logger = logging.getLogger(__name__)

# The conditional update and the follow-up read are two statements; if a code
# is re-created between them the update is simply tried again.
RESOLVE_MAX_ATTEMPTS = 3


class ResolutionStatus(enum.Enum):
    RESOLVED = "resolved"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"


@dataclass(frozen=True)
class Resolution:
    status: ResolutionStatus
    original_url: Optional[str] = None
    click_count: Optional[int] = None

    @property
    def resolved(self) -> bool:
        return self.status is ResolutionStatus.RESOLVED


class RedirectService:
    """
    Service for handling URL redirections.

    Counting the click and deciding the link is live happen in one UPDATE, so
    an EXPIRED outcome never leaves a counted click behind.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize the redirect service with a database session.

        Args:
            session: Async database session for database operations
        """
        self.store = LinkStore(session)

    async def resolve(self, short_code: str) -> Resolution:
        """
        Resolve a short code, counting the click when it resolves.

        Args:
            short_code: The short code to look up

        Returns:
            Resolution with the final state; original_url and click_count are
            set only when RESOLVED

        Raises:
            StoreUnavailableError: If the database operation fails
        """
        code = sanitize_short_code(short_code)
        if code is None or code != short_code:
            return Resolution(ResolutionStatus.NOT_FOUND)

        for _ in range(RESOLVE_MAX_ATTEMPTS):
            now = utcnow()
            counted = await self.store.increment_if_live(code, now)
            if counted is not None:
                original_url, click_count = counted
                return Resolution(ResolutionStatus.RESOLVED, original_url, click_count)

            link = await self.store.get(code)
            if link is None:
                return Resolution(ResolutionStatus.NOT_FOUND)
            if link.is_expired(now):
                logger.debug(f"Short code {code} expired at {link.expires_at.isoformat()}")
                return Resolution(ResolutionStatus.EXPIRED)

        logger.warning(f"Short code {code} changed under {RESOLVE_MAX_ATTEMPTS} resolve attempts")
        return Resolution(ResolutionStatus.NOT_FOUND)
