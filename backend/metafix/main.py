"""
FastAPI Main Application for Metafix

This module defines the main FastAPI application entry point with:
- API route registration
- Database table creation
- CORS middleware
- Request logging middleware with X-Request-ID correlation
- Lifespan context manager for startup/shutdown tasks

Entry Point:
    Run with: uvicorn metafix.main:app --reload  (from the backend directory)
"""

import logging
import os
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from metafix.config import Config
from metafix.database import SessionLocal, engine
from metafix.models.base import Base
from metafix.models.settings import Settings
from metafix.services.auth import AuthRequired
from metafix.services.structured_logging import (
    set_request_id, clear_context, generate_request_id, setup_structured_logging, apply_log_level
)

# Only set up logging if no handlers exist yet (uvicorn or tests may have configured it)
root_logger = logging.getLogger()
if not root_logger.handlers:
    setup_structured_logging(
        level=getattr(logging, Config.LOG_LEVEL, logging.INFO),
        json_output=Config.LOG_FORMAT == "json",
    )

# Silence noisy debug messages
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware to log all HTTP requests and responses with correlation IDs.

    Logs:
    - Request method, path, and client IP
    - Response status code and processing time
    - Errors and exceptions

    Correlation:
    - Extracts or generates X-Request-ID for request tracing
    - Sets correlation context for structured logging
    """

    async def dispatch(self, request: Request, call_next):
        if request.url.path.startswith("/health"):
            return await call_next(request)

        request_id = request.headers.get("X-Request-ID") or generate_request_id()
        set_request_id(request_id)

        client_ip = request.client.host if request.client else "unknown"
        logger.info(f"[{request_id}] {request.method} {request.url.path} from {client_ip}")

        start_time = time.time()
        try:
            response = await call_next(request)
            process_time = (time.time() - start_time) * 1000

            response.headers["X-Request-ID"] = request_id

            logger.info(
                f"[{request_id}] {response.status_code} ({process_time:.2f}ms)"
            )

            return response
        except Exception as e:
            process_time = (time.time() - start_time) * 1000
            logger.error(
                f"[{request_id}] Request failed after {process_time:.2f}ms: "
                f"{type(e).__name__}: {e}"
            )
            raise
        finally:
            clear_context()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifespan context manager for startup and shutdown tasks.

    Startup Tasks:
        1. Validate environment configuration
        2. Create all database tables
        3. Apply the log level stored in the settings row (LOG_LEVEL in the
           environment wins)
    """
    logger.info(f"Starting {Config.APP_TITLE} v{Config.APP_VERSION}")

    if not Config.validate():
        logger.warning("Configuration validation failed; check APP_PORT, OPENLIST_TIMEOUT and LOG_FORMAT")

    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created/verified")

    if "LOG_LEVEL" not in os.environ:
        db = SessionLocal()
        try:
            apply_log_level(Settings.get_settings(db).log_level)
        finally:
            db.close()

    yield

    logger.info(f"Shutting down {Config.APP_TITLE}")


tags_metadata = [
    {
        "name": "openlist",
        "description": "Correction of TMDB mappings stored in OpenList metainfo.json files.",
    },
    {
        "name": "settings",
        "description": "OpenList connection settings.",
    },
    {
        "name": "health",
        "description": "Kubernetes-compatible liveness/readiness probes.",
    },
]

app = FastAPI(
    title=Config.APP_TITLE,
    description=Config.APP_DESCRIPTION,
    version=Config.APP_VERSION,
    lifespan=lifespan,
    openapi_tags=tags_metadata,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    license_info={
        "name": "MIT",
    },
)


@app.exception_handler(AuthRequired)
async def auth_required_handler(request: Request, exc: AuthRequired):
    """Render missing/invalid session cookies as 401 {"error": ...}."""
    return JSONResponse(status_code=401, content={"error": exc.message})


app.add_middleware(RequestLoggingMiddleware)

if Config.DEV_MODE:
    logger.info("CORS wildcard enabled (DEV_MODE=true). Disable in production!")

app.add_middleware(
    CORSMiddleware,
    allow_origins=Config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

from metafix.api import openlist_routes, settings_routes, health_routes  # noqa: E402

app.include_router(openlist_routes.router, tags=["openlist"])
app.include_router(settings_routes.router, tags=["settings"])
app.include_router(health_routes.router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=Config.APP_HOST, port=Config.APP_PORT)
