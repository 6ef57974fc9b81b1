"""
FastAPI Application Entry Point

This module initializes the FastAPI application and configures:
- API routes (short URLs and analytics)
- Middleware (logging, CORS)
- Rate limiting
- Startup/shutdown hooks (table creation, expired link sweeper)

Run with:
    uvicorn shortlinks.main:app
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from shortlinks.api import endpoints
from shortlinks.core.rate_limit import limiter
from shortlinks.core.setting import settings
from shortlinks.core.sweeper import start_sweeper, stop_sweeper
from shortlinks.db.session import init_models
from shortlinks.middleware.logging import add_logging_middleware, configure_logging

configure_logging()

# Title and description are used in auto-generated API documentation
app = FastAPI(
    title="Short Link Service",
    description="Maps long URLs to short codes, redirects them and counts clicks",
    version="1.0.0",
    docs_url="/docs",  # Swagger UI documentation
    redoc_url="/redoc",  # ReDoc documentation
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

add_logging_middleware(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/", tags=["Health"])
async def root():
    """
    Root endpoint for health checks.

    Returns:
        Simple JSON response indicating service is running
    """
    return {
        "message": "Short Link Service",
        "version": "1.0.0",
        "docs": "/docs"
    }


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint for monitoring.

    Returns:
        Health status of the service
    """
    return {"status": "healthy"}


app.include_router(endpoints.urls_router, tags=["Short URLs"])
app.include_router(endpoints.analytics_router, tags=["Analytics"])


@app.on_event("startup")
async def startup_event():
    """Initialize services on startup."""
    if settings.AUTO_CREATE_TABLES:
        await init_models()
    await start_sweeper()


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown."""
    await stop_sweeper()
