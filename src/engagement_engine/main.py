"""Main entry point for the engagement engine API."""

from __future__ import annotations

import logging

from fastapi import FastAPI

from engagement_engine.api.v1 import (
    audit_router,
    content_router,
    earnings_router,
    events_router,
    fraud_router,
    moderation_router,
    payouts_router,
)
from engagement_engine.api.v1.errors import engine_error_handler
from engagement_engine.core.errors import EngineError
from engagement_engine.core.settings import settings

logging.basicConfig(level=logging.DEBUG if settings.debug else logging.INFO)

# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Engagement monetization and moderation engine",
    version=settings.app_version,
)

app.add_exception_handler(EngineError, engine_error_handler)

# Include API routers
app.include_router(content_router, prefix="/api/v1")
app.include_router(events_router, prefix="/api/v1")
app.include_router(earnings_router, prefix="/api/v1")
app.include_router(fraud_router, prefix="/api/v1")
app.include_router(moderation_router, prefix="/api/v1")
app.include_router(payouts_router, prefix="/api/v1")
app.include_router(audit_router, prefix="/api/v1")


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("engagement_engine.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
