"""
Health Check API Routes

Provides Kubernetes-compatible health check endpoints for the application.

Endpoints:
- /health/live: Liveness probe - is the application running?
- /health/ready: Readiness probe - can the settings database be queried?
"""

import logging
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session

from metafix.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live")
async def liveness_probe():
    """
    Kubernetes liveness probe.

    Returns 200 if the application is running.
    This endpoint should be lightweight and not check external dependencies.

    Returns:
        {"status": "alive"}
    """
    return {"status": "alive"}


@router.get("/ready")
async def readiness_probe(db: Session = Depends(get_db)):
    """
    Kubernetes readiness probe.

    OpenList itself is not checked: corrections fail individually when it
    is down, and the application can still serve settings.

    Returns:
        200: Application is ready
        503: Settings database is not reachable
    """
    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        logger.warning(f"Readiness check failed: {type(e).__name__}: {e}")
        return JSONResponse(status_code=503, content={"status": "not_ready", "reason": "database"})

    return {"status": "ready"}
