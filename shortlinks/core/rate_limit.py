"""
Rate Limiting Configuration

This module provides rate limiting functionality for API endpoints.
Rate limiting prevents abuse and ensures fair usage.

Design Decisions:
- Uses slowapi for rate limiting (lightweight, FastAPI-compatible)
- Different limits for different endpoints
- IP-based limiting
- Can be switched off with RATE_LIMIT_ENABLED=false (tests, trusted deployments)
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from shortlinks.core.setting import settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)

# Rate limit configurations per endpoint
# Format: "count/period" (e.g., "10/minute" means 10 requests per minute)
RATE_LIMITS = {
    "shorten": "10/minute",  # Link creation: 10 per minute per IP
    "redirect": "100/minute",  # Redirects: 100 per minute per IP
    "manage": "30/minute",  # Delete and list-mine
    "stats": "30/minute",  # Click count and stats queries
}
