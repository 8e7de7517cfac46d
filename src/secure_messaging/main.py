# src/secure_messaging/main.py
"""Main entry point for the secure messaging application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from secure_messaging.api.v1 import (
    conversations_router,
    keys_router,
    messages_router,
    system_router,
)
from secure_messaging.core.errors import MessagingError
from secure_messaging.core.settings import settings
from secure_messaging.db.session import create_tables

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    """Apply the configured log level to the root logger."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# Initialize FastAPI app
app = FastAPI(
    title="Secure Messaging API",
    description="Encrypted conversations with participant-only access",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Include API routers
app.include_router(keys_router, prefix="/api/v1")
app.include_router(conversations_router, prefix="/api/v1")
app.include_router(messages_router, prefix="/api/v1")
app.include_router(system_router, prefix="/api/v1")


@app.exception_handler(MessagingError)
async def messaging_error_handler(request: Request, exc: MessagingError) -> JSONResponse:
    """Render domain failures with their status code and error kind."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "error": exc.kind},
    )


@app.on_event("startup")
async def on_startup() -> None:
    configure_logging()
    create_tables()
    logger.info("%s %s started", settings.app_name, settings.app_version)


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
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("secure_messaging.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
