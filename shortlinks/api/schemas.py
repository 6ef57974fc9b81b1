"""
API Request and Response Schemas

This module defines all Pydantic models for API requests and responses.
Separated from endpoints to keep concerns separated and enable reuse.

Field names are snake_case in Python and camelCase on the wire
(originalUrl, shortUrl, expiresAt, ...).

originalUrl and expiresAt are plain strings here on purpose: their
validation belongs to the shortening service, which reports failures as
400 InvalidUrl / InvalidExpiry instead of FastAPI's generic 422.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ShortenRequest(CamelModel):
    """Request model for URL shortening endpoint."""
    original_url: str = Field(..., description="The long URL to shorten")
    custom_code: Optional[str] = Field(
        default=None,
        description="Optional caller-chosen short code ([A-Za-z0-9_-], up to 32 characters)"
    )
    expires_at: Optional[str] = Field(
        default=None,
        description="Optional ISO-8601 expiration timestamp, must be in the future"
    )


class ShortenResponse(CamelModel):
    """Response model for URL shortening endpoint."""
    short_url: str = Field(..., description="The complete short URL")
    original_url: str = Field(..., description="The original long URL")
    short_code: str = Field(..., description="The short code")
    expires_at: Optional[datetime] = Field(default=None, description="Expiration, if any")


class LinkItem(CamelModel):
    """One entry of the caller's link list."""
    original_url: str
    short_url: str
    expires_at: Optional[datetime] = None


class DeleteResponse(CamelModel):
    """Response model for the delete endpoint."""
    message: str
    deleted_url: LinkItem


class ClicksResponse(CamelModel):
    """Response model for the click count endpoint."""
    clicks: int


class StatsResponse(CamelModel):
    """Response model for statistics endpoint."""
    original_url: str
    short_code: str
    created_at: datetime
    expires_at: Optional[datetime] = None
    expired: bool
    clicks: int
