"""
FastAPI Endpoints for the Short Link Service

This module defines all REST API endpoints with minimal logic.
Endpoints only handle:
- Request validation (Pydantic models)
- Authentication (bearer identity via get_current_identity)
- Rate limiting
- Mapping service outcomes to HTTP status codes
- Delegating to service layer

Status mapping:
- 400: invalid URL / expiry / custom code, custom code taken
- 401: missing or rejected bearer token
- 403: link owned by someone else
- 404: unknown short code
- 410: expired short code (redirect only)
- 500: store failure, code generation exhausted
"""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from shortlinks.api.schemas import (
    ClicksResponse,
    DeleteResponse,
    LinkItem,
    ShortenRequest,
    ShortenResponse,
    StatsResponse,
)
from shortlinks.core.clock import as_aware
from shortlinks.core.exceptions import (
    CodeGenerationExhaustedError,
    ForbiddenError,
    InvalidExpiryError,
    InvalidShortCodeError,
    InvalidURLError,
    ShortCodeNotFoundError,
    ShortCodeTakenError,
    StoreUnavailableError,
)
from shortlinks.core.identity import Identity
from shortlinks.core.rate_limit import RATE_LIMITS, limiter
from shortlinks.core.security import get_current_identity
from shortlinks.core.setting import settings
from shortlinks.core.validators import sanitize_short_code
from shortlinks.db.models import ShortLink
from shortlinks.db.session import get_session
from shortlinks.services.ownership import OwnershipGuard
from shortlinks.services.redirect_service import RedirectService, ResolutionStatus
from shortlinks.services.stats_service import StatsService
from shortlinks.services.url_service import URLShorteningService

urls_router = APIRouter(prefix="/api/urls")
analytics_router = APIRouter(prefix="/api/analytics")

REDIRECT_PATH = "/api/urls"


def build_short_url(short_code: str) -> str:
    return f"{settings.BASE_URL.rstrip('/')}{REDIRECT_PATH}/{short_code}"


def to_link_item(link: ShortLink) -> LinkItem:
    return LinkItem(
        original_url=link.original_url,
        short_url=build_short_url(link.code),
        expires_at=as_aware(link.expires_at),
    )


def not_found(short_code: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Short code '{short_code}' not found"
    )


def store_error(e: StoreUnavailableError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=str(e)
    )


@urls_router.post(
    "/shorten",
    response_model=ShortenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a short URL",
    description="Takes a long URL and returns a shortened version with a unique code"
)
@limiter.limit(RATE_LIMITS["shorten"])
async def create_short_url(
    request: Request,  # Required for rate limiting (slowapi expects parameter named 'request')
    body: ShortenRequest,
    identity: Identity = Depends(get_current_identity),
    session: AsyncSession = Depends(get_session)
) -> ShortenResponse:
    """
    Create a new short URL owned by the caller.

    Returns:
        ShortenResponse with short_url, original_url, short_code and expires_at
    """
    url_service = URLShorteningService(session)

    try:
        link = await url_service.shorten(
            body.original_url,
            owner=identity,
            custom_code=body.custom_code,
            expires_at=body.expires_at,
        )
    except (InvalidURLError, InvalidExpiryError, InvalidShortCodeError, ShortCodeTakenError) as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except CodeGenerationExhaustedError as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(e)
        )
    except StoreUnavailableError as e:
        raise store_error(e)

    return ShortenResponse(
        short_url=build_short_url(link.code),
        original_url=link.original_url,
        short_code=link.code,
        expires_at=as_aware(link.expires_at),
    )


@urls_router.get(
    "/",
    response_model=list[LinkItem],
    summary="List my short URLs",
    description="Returns every short URL created by the authenticated caller"
)
@limiter.limit(RATE_LIMITS["manage"])
async def list_my_urls(
    request: Request,
    identity: Identity = Depends(get_current_identity),
    session: AsyncSession = Depends(get_session)
) -> list[LinkItem]:
    guard = OwnershipGuard(session)
    try:
        links = await guard.list_owned(identity)
    except StoreUnavailableError as e:
        raise store_error(e)
    return [to_link_item(link) for link in links]


@urls_router.delete(
    "/delete/{short_code}",
    response_model=DeleteResponse,
    summary="Delete a short URL",
    description="Deletes a short URL owned by the authenticated caller"
)
@limiter.limit(RATE_LIMITS["manage"])
async def delete_short_url(
    short_code: str,
    request: Request,
    identity: Identity = Depends(get_current_identity),
    session: AsyncSession = Depends(get_session)
) -> DeleteResponse:
    """
    Delete a short URL.

    Raises:
        HTTPException 403: If the caller does not own the link
        HTTPException 404: If short code not found
    """
    if sanitize_short_code(short_code) != short_code:
        raise not_found(short_code)

    guard = OwnershipGuard(session)
    try:
        link = await guard.delete_owned(identity, short_code)
    except ShortCodeNotFoundError:
        raise not_found(short_code)
    except ForbiddenError as e:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=str(e)
        )
    except StoreUnavailableError as e:
        raise store_error(e)

    return DeleteResponse(
        message="URL deleted successfully",
        deleted_url=to_link_item(link),
    )


@urls_router.get(
    "/{short_code}",
    status_code=status.HTTP_302_FOUND,
    summary="Redirect to original URL",
    description="Takes a short code and redirects to the original long URL"
)
@limiter.limit(RATE_LIMITS["redirect"])
async def redirect_to_url(
    short_code: str,
    request: Request,
    session: AsyncSession = Depends(get_session)
) -> RedirectResponse:
    """
    Redirect to the original URL for a given short code.

    The click is counted before the response is sent.

    Raises:
        HTTPException 404: If short code not found
        HTTPException 410: If the short code has expired
        HTTPException 429: If rate limit exceeded
    """
    redirect_service = RedirectService(session)
    try:
        resolution = await redirect_service.resolve(short_code)
    except StoreUnavailableError as e:
        raise store_error(e)

    if resolution.status is ResolutionStatus.NOT_FOUND:
        raise not_found(short_code)
    if resolution.status is ResolutionStatus.EXPIRED:
        raise HTTPException(
            status_code=status.HTTP_410_GONE,
            detail=f"Short code '{short_code}' has expired"
        )

    return RedirectResponse(
        url=resolution.original_url,
        status_code=status.HTTP_302_FOUND
    )


@analytics_router.get(
    "/clicks/{short_code}",
    response_model=ClicksResponse,
    summary="Get click count",
    description="Returns how many times a short URL has been followed"
)
@limiter.limit(RATE_LIMITS["stats"])
async def get_click_count(
    short_code: str,
    request: Request,
    session: AsyncSession = Depends(get_session)
) -> ClicksResponse:
    if sanitize_short_code(short_code) != short_code:
        raise not_found(short_code)

    stats_service = StatsService(session)
    try:
        clicks = await stats_service.get_click_count(short_code)
    except ShortCodeNotFoundError:
        raise not_found(short_code)
    except StoreUnavailableError as e:
        raise store_error(e)

    return ClicksResponse(clicks=clicks)


@analytics_router.get(
    "/stats/{short_code}",
    response_model=StatsResponse,
    summary="Get URL statistics",
    description="Returns statistics for a short URL including clicks, creation date and expiry"
)
@limiter.limit(RATE_LIMITS["stats"])
async def get_url_stats(
    short_code: str,
    request: Request,
    session: AsyncSession = Depends(get_session)
) -> StatsResponse:
    """
    Get statistics for a short URL.

    Raises:
        HTTPException 404: If short code not found
        HTTPException 429: If rate limit exceeded
    """
    if sanitize_short_code(short_code) != short_code:
        raise not_found(short_code)

    stats_service = StatsService(session)
    try:
        stats = await stats_service.get_stats(short_code)
    except ShortCodeNotFoundError:
        raise not_found(short_code)
    except StoreUnavailableError as e:
        raise store_error(e)

    return StatsResponse(**stats)
