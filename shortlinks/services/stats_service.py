"""
Statistics Service

This service handles read-only click accounting for short links.

Design Decisions:
- Pure reads: nothing here mutates a row
- Counts come straight from the committed click_count column, which is only
  ever changed by the single-statement increment in LinkStore, so a read
  never sees a half-applied increment
- Expired links still report their stats until they are deleted or purged
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from shortlinks.core.clock import as_aware, utcnow
from shortlinks.core.exceptions import ShortCodeNotFoundError
from shortlinks.services.link_store import LinkStore


class StatsService:
    """
    Service for retrieving click statistics.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize the stats service with a database session.

        Args:
            session: Async database session for database operations
        """
        self.store = LinkStore(session)

    async def get_click_count(self, short_code: str) -> int:
        """
        Get the number of successful redirects for a short code.

        Raises:
            ShortCodeNotFoundError: If no link has this code
            StoreUnavailableError: If the database operation fails
        """
        count = await self.store.get_click_count(short_code)
        if count is None:
            raise ShortCodeNotFoundError(short_code)
        return count

    async def get_stats(self, short_code: str) -> dict[str, Any]:
        """
        Get statistics for a short link.

        Returns:
            Dictionary with statistics:
            - original_url: The original long URL
            - short_code: The short code
            - created_at: When the link was created
            - expires_at: When the link expires (None if never)
            - expired: Whether the link has expired as of now
            - clicks: Total number of counted redirects

        Raises:
            ShortCodeNotFoundError: If no link has this code
        """
        link = await self.store.get(short_code)
        if link is None:
            raise ShortCodeNotFoundError(short_code)

        return {
            "original_url": link.original_url,
            "short_code": link.code,
            "created_at": as_aware(link.created_at),
            "expires_at": as_aware(link.expires_at),
            "expired": link.is_expired(utcnow()),
            "clicks": link.click_count,
        }
