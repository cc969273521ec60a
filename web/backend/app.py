#!/usr/bin/env python3
"""
ATS Core API - FastAPI Application

Thin HTTP boundary over the tenant isolation gateway and the scoring engine.
Authentication is handled upstream; the auth layer places a SessionContext
on request.state.session_context and the active tenant is chosen with the
X-Tenant-Id header.

Usage:
    python main.py serve

Then open:
    - http://localhost:8080/docs - API Documentation (Swagger UI)
    - http://localhost:8080/redoc - Alternative API Documentation
"""

import logging

from fastapi import FastAPI

from .config import get_config
from .exceptions import register_exception_handlers
from .routers import scoring_router, pipeline_router
from .routers.pipeline import add_rate_limit_handlers

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    config = get_config()

    # Configure logging
    logging.basicConfig(
        level=getattr(logging, config.logging.level.upper(), logging.INFO),
        format=config.logging.format
    )

    app = FastAPI(
        title="ATS Core API",
        description="Tenant-scoped scoring settings and scored pipelines",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc"
    )

    # Configure rate limiting
    add_rate_limit_handlers(app)

    # Register exception handlers
    register_exception_handlers(app)

    # Include routers
    app.include_router(scoring_router)
    app.include_router(pipeline_router)

    @app.get("/health")
    def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "service": "ats-core"}

    return app


app = create_app()


def main():
    """Run the web server."""
    import uvicorn

    config = get_config()
    logger.info(f"Starting ATS Core API on {config.web.host}:{config.web.port}")
    logger.info(f"API Docs: http://{config.web.host}:{config.web.port}/docs")

    uvicorn.run(
        "web.backend.app:app",
        host=config.web.host,
        port=config.web.port,
        reload=False,
        log_level=config.logging.level.lower()
    )


if __name__ == "__main__":
    main()
