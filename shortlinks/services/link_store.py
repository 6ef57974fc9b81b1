"""
Link Store

The Mapping Store: every read and write of the short_links table goes through
this class. Each mutating method is a single SQL statement followed by a
commit, so its effect is atomic and durable when the method returns:

- insert: INSERT guarded by the primary key (conflict -> ShortCodeTakenError)
- increment_if_live: UPDATE ... SET click_count = click_count + 1
  WHERE <live> RETURNING ..., so the expiry decision and the increment
  can't disagree and concurrent redirects never lose a count
- delete_owned: DELETE ... WHERE code AND owner_id
- purge_expired: DELETE ... WHERE expires_at < cutoff

No method reads a value and writes it back from Python.
"""

import functools
import logging
from datetime import datetime
from typing import Any, Callable, Optional, TypeVar

from sqlalchemy import delete, insert, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from shortlinks.core.exceptions import ShortCodeTakenError, StoreUnavailableError
from shortlinks.db.models import ShortLink

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def handle_store_error(method: F) -> F:
    """Roll back and re-raise SQLAlchemy failures as StoreUnavailableError."""

    @functools.wraps(method)
    async def wrapper(self, *args, **kwargs):
        try:
            return await method(self, *args, **kwargs)
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Store operation {method.__name__} failed: {e}", exc_info=True)
            raise StoreUnavailableError(f"{method.__name__} failed", original_error=e) from e

    return wrapper


class LinkStore:
    """Atomic operations on ShortLink rows for one database session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def insert(self, link: ShortLink) -> ShortLink:
        """
        Insert a new link, relying on the primary key for uniqueness.

        Raises:
            ShortCodeTakenError: If a row with the same code already exists
            StoreUnavailableError: On any other database failure
        """
        statement = insert(ShortLink).values(
            code=link.code,
            original_url=link.original_url,
            owner_id=link.owner_id,
            created_at=link.created_at,
            expires_at=link.expires_at,
            click_count=0,
        )
        try:
            await self.session.execute(statement)
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise ShortCodeTakenError(link.code) from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to insert short code {link.code}: {e}", exc_info=True)
            raise StoreUnavailableError("insert failed", original_error=e) from e

        link.click_count = 0
        return link

    @handle_store_error
    async def get(self, code: str) -> Optional[ShortLink]:
        """Fetch the current committed row for a code, bypassing stale identity-map copies."""
        statement = (
            select(ShortLink)
            .where(ShortLink.code == code)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(statement)
        return result.scalars().first()

    @handle_store_error
    async def increment_if_live(self, code: str, now: datetime) -> Optional[tuple[str, int]]:
        """
        Count a click if the link exists and has not expired at ``now``.

        Returns:
            (original_url, new click_count) when a row was updated, None otherwise
        """
        statement = (
            update(ShortLink)
            .where(ShortLink.code == code)
            .where(or_(ShortLink.expires_at.is_(None), ShortLink.expires_at >= now))
            .values(click_count=ShortLink.click_count + 1)
            .returning(ShortLink.original_url, ShortLink.click_count)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(statement)
        row = result.first()
        await self.session.commit()

        if row is None:
            return None
        return row[0], row[1]

    @handle_store_error
    async def get_click_count(self, code: str) -> Optional[int]:
        statement = select(ShortLink.click_count).where(ShortLink.code == code)
        result = await self.session.execute(statement)
        return result.scalar_one_or_none()

    @handle_store_error
    async def list_by_owner(self, owner_id: str) -> list[ShortLink]:
        statement = (
            select(ShortLink)
            .where(ShortLink.owner_id == owner_id)
            .order_by(ShortLink.created_at.desc(), ShortLink.code)
        )
        result = await self.session.execute(statement)
        return list(result.scalars().all())

    @handle_store_error
    async def delete_owned(self, code: str, owner_id: str) -> bool:
        """
        Delete a link only if it still belongs to ``owner_id``.

        Returns:
            True if a row was removed, False if it was already gone
        """
        statement = (
            delete(ShortLink)
            .where(ShortLink.code == code, ShortLink.owner_id == owner_id)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(statement)
        await self.session.commit()
        return result.rowcount > 0

    @handle_store_error
    async def purge_expired(self, before: datetime) -> int:
        """Hard-delete every link whose expires_at is earlier than ``before``."""
        statement = (
            delete(ShortLink)
            .where(ShortLink.expires_at.is_not(None), ShortLink.expires_at < before)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(statement)
        await self.session.commit()
        return result.rowcount
