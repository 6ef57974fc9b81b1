"""
Ownership Guard

Gates the owner-only operations (delete, list) on the caller's Identity.
The identity is always passed in explicitly; nothing here reads request
state.

Delete is authorize-then-delete, but the DELETE itself also filters on
owner_id, so a link can never be removed by anyone but its owner even if
the two steps interleave with other requests.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from shortlinks.core.exceptions import ForbiddenError, ShortCodeNotFoundError
from shortlinks.core.identity import Identity
from shortlinks.db.models import ShortLink
from shortlinks.services.link_store import LinkStore

logger = logging.getLogger(__name__)


class OwnershipGuard:
    """Owner-scoped access to short links."""

    def __init__(self, session: AsyncSession):
        self.store = LinkStore(session)

    async def authorize_delete(self, identity: Identity, short_code: str) -> ShortLink:
        """
        Check that ``identity`` may delete ``short_code``.

        Returns:
            The ShortLink to be deleted

        Raises:
            ShortCodeNotFoundError: If no link has this code
            ForbiddenError: If the link belongs to someone else
        """
        link = await self.store.get(short_code)
        if link is None:
            raise ShortCodeNotFoundError(short_code)
        if link.owner_id != identity.user_id:
            logger.warning(f"Identity {identity} tried to delete {short_code} owned by another user")
            raise ForbiddenError(short_code)
        return link

    async def delete_owned(self, identity: Identity, short_code: str) -> ShortLink:
        """
        Delete a link owned by ``identity``.

        Returns:
            The ShortLink as it was just before deletion

        Raises:
            ShortCodeNotFoundError: If absent, including when a concurrent delete won
            ForbiddenError: If the link belongs to someone else
        """
        link = await self.authorize_delete(identity, short_code)
        if not await self.store.delete_owned(short_code, identity.user_id):
            raise ShortCodeNotFoundError(short_code)
        logger.info(f"Short code {short_code} deleted by owner {identity}")
        return link

    async def list_owned(self, identity: Identity) -> list[ShortLink]:
        """Links created by ``identity``, newest first."""
        return await self.store.list_by_owner(identity.user_id)
