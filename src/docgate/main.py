# src/docgate/main.py
"""Main entry point for the DocGate application."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from docgate import __version__
from docgate.api.v1 import auth_router, content_router, system_router
from docgate.core.settings import settings
from docgate.services.gate import AccessGate

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    """Apply the configured log level to the root logger."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(gate: AccessGate | None = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        gate: Pre-built gate (tests, embedding). When omitted the gate is built
            from settings at startup, and any configuration error aborts startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if getattr(app.state, "gate", None) is None:
            app.state.gate = AccessGate.from_settings(settings)
        yield

    app = FastAPI(
        title="DocGate API",
        description="Wallet-gated access to encrypted documentation",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.gate = gate

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    app.include_router(auth_router, prefix="/api/v1")
    app.include_router(content_router, prefix="/api/v1")
    app.include_router(system_router, prefix="/api/v1")

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint to verify the service is running."""
        return {"status": "ok"}

    @app.get("/")
    async def root() -> dict[str, str]:
        """Root endpoint with basic information about the API."""
        return {
            "name": "DocGate API",
            "version": __version__,
            "docs": "/docs",
        }

    return app


if __name__ == "__main__":
    import uvicorn

    configure_logging(settings.log_level)
    uvicorn.run(
        "docgate.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
    )
