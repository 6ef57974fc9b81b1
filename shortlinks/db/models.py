"""
Database Models for the Short-Code Mapping Engine

This module defines the SQLModel database schema for:
- ShortLink: Binds a short code to its target URL, owner, expiration and click count

Design Decisions:
- code is the primary key, so uniqueness is enforced by the database on insert
  (compare-and-insert, never check-then-insert)
- click_count lives on the row and is only changed with a database-side
  increment (click_count = click_count + 1)
- owner_id is indexed for the "list my URLs" query
- expires_at is indexed for the expired-link purge
- All timestamps are naive UTC (see shortlinks.core.clock)

Sharding would key on code; nothing here assumes a single node beyond the
primary-key constraint.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Integer, String, Text
from sqlmodel import Column, Field, SQLModel

from shortlinks.core.clock import utcnow


class ShortLink(SQLModel, table=True):
    """
    Main table storing short code mappings.

    Fields:
    - code: Unique short code (8 characters when generated, up to 32 when custom)
    - original_url: The long URL that was shortened
    - owner_id: Identity that created the link; only it may delete the link
    - created_at: Timestamp when the link was created (immutable)
    - expires_at: Optional expiration; None means the link never expires
    - click_count: Number of successful redirects (monotonic)
    """
    __tablename__ = "short_links"

    code: str = Field(
        sa_column=Column(String(32), primary_key=True),
        max_length=32
    )
    original_url: str = Field(sa_column=Column(Text, nullable=False))
    owner_id: str = Field(
        sa_column=Column(String(128), nullable=False, index=True)
    )
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(), nullable=False, index=True)
    )
    expires_at: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime(), nullable=True, index=True)
    )
    click_count: int = Field(default=0, sa_column=Column(Integer, nullable=False, default=0))

    def is_expired(self, now: datetime) -> bool:
        """A link is live until and including its expires_at instant."""
        return self.expires_at is not None and now > self.expires_at
