"""
FastAPI application entry point for the asset telemetry API.

Provides the liveness endpoints and serves as the application factory.
Service settings are loaded and validated at startup; TENANT_TOKENS are
parsed into a BearerAuth instance stored on app.state for route handlers.
Domain errors raised anywhere below a route are turned into
``{"detail", "error"}`` responses by a single exception handler.

CHANGELOG:
- 2026-10-10: Register assets CRUD router (STORY-110)
- 2026-10-09: Dispose the engine on shutdown (STORY-108)
- 2026-10-07: Register telemetry router, AssetServiceError handler (STORY-105)
- 2026-10-05: Initial creation (STORY-101)
"""

import logging
import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from asset_telemetry.api.assets import router as assets_router
from asset_telemetry.api.telemetry import router as telemetry_router
from asset_telemetry.auth.bearer import BearerAuth, parse_tenant_tokens
from asset_telemetry.config import get_settings
from asset_telemetry.db.session import dispose_engine
from asset_telemetry.errors import AssetServiceError
from asset_telemetry.logging_setup import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: startup validation and shutdown cleanup.

    Startup:
        - Loads and validates ServiceSettings (aborts on invalid config).
        - Configures JSON logging.
        - Builds BearerAuth from TENANT_TOKENS.

    Shutdown:
        - Disposes the database engine.
    """
    settings = get_settings()
    configure_logging(settings.log_level)
    app.state.settings = settings

    token_map = parse_tenant_tokens(settings.tenant_tokens)
    app.state.auth = BearerAuth(token_map)
    logger.info("Parsed %d tenant token(s) from TENANT_TOKENS", len(token_map))

    logger.info("Settings validated, asset telemetry API ready")
    yield
    await dispose_engine()
    logger.info("Asset telemetry API shutting down")


app = FastAPI(
    title="Asset Telemetry API",
    description="Asset records, connector health and live/historical consumption.",
    version="0.1.0",
    lifespan=lifespan,
)


_cors_origins = [
    origin.strip()
    for origin in os.environ.get("CORS_ALLOW_ORIGINS", "").split(",")
    if origin.strip()
]
if _cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Authorization", "Content-Type"],
    )


@app.exception_handler(AssetServiceError)
async def asset_service_error_handler(
    request: Request, exc: AssetServiceError
) -> JSONResponse:
    """Render a domain error as ``{"detail": message, "error": code}``."""
    logger.warning(
        "%s %s failed: %s",
        request.method,
        request.url.path,
        exc.message,
        extra={"action": exc.error_code, "detailed_messages": exc.detailed_messages},
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": exc.error_code},
    )


# Telemetry routes first: /v1/assets/consumption must not be taken for an asset ID.
app.include_router(telemetry_router)
app.include_router(assets_router)


@app.get("/health", tags=["health"])
async def health() -> dict[str, str]:
    """Liveness check for container health checks; no authentication."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict:
    """Root health check endpoint.

    Returns:
        dict: JSON object with application status.
    """
    return {"status": "ok"}
