"""
AttendLine FastAPI Application

LINE chatbot for guardians: registration, attendance requests and status lookups.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from attendline.config import settings
from attendline.core.database import close_db, get_engine
from attendline.webhooks import line

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan events.

    Startup:
    - Verify database connection

    Shutdown:
    - Dispose the database engine
    """
    logger.info("AttendLine starting...")

    try:
        async with get_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("Database connection verified")
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        raise

    if not settings.line_reply_enabled:
        logger.warning("LINE_CHANNEL_ACCESS_TOKEN not set; replies are disabled")

    yield

    logger.info("AttendLine shutting down...")
    await close_db()


def create_app() -> FastAPI:
    """Create and configure FastAPI application.

    Returns:
        Configured FastAPI app instance
    """
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="AttendLine",
        description="LINE chatbot for lesson attendance requests",
        version=VERSION,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.is_local else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/", tags=["Health"])
    async def root() -> dict[str, str]:
        """Root endpoint."""
        return {
            "service": "AttendLine",
            "status": "operational",
            "version": VERSION,
            "environment": settings.ENVIRONMENT,
        }

    @app.get("/health", tags=["Health"], response_model=None)
    async def health_check() -> JSONResponse:
        """Health check endpoint for load balancers.

        Returns 503 when the database is unreachable.
        """
        checks: dict[str, dict[str, Any]] = {}

        try:
            async with get_engine().connect() as conn:
                await conn.execute(text("SELECT 1"))
            checks["database"] = {"status": "healthy"}
        except Exception as e:
            checks["database"] = {"status": "unhealthy", "error": str(e)}

        checks["line"] = {"status": "healthy", "replies_enabled": settings.line_reply_enabled}

        all_healthy = all(check["status"] == "healthy" for check in checks.values())
        return JSONResponse(
            status_code=200 if all_healthy else 503,
            content={
                "status": "healthy" if all_healthy else "unhealthy",
                "environment": settings.ENVIRONMENT,
                "checks": checks,
            },
        )

    @app.get("/health/live", tags=["Health"])
    async def liveness_check() -> dict[str, str]:
        """Liveness check; 200 whenever the process is serving."""
        return {"status": "alive"}

    app.include_router(line.router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "attendline.main:app",
        host="0.0.0.0",  # nosec B104 - Intentional for containerized deployment
        port=8000,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )
