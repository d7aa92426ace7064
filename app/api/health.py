"""
Health check endpoints.

These endpoints help monitor if our application is running correctly.
Load balancers and platforms use them to know if they should send traffic
to our app.
"""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Request, Response, status
import logging

# prefix="/health" means all routes in this router start with /health
router = APIRouter(prefix="/health", tags=["health"])

# The status route the web frontend polls
api_router = APIRouter(prefix="/api", tags=["health"])

logger = logging.getLogger(__name__)


@api_router.get("/health")
async def api_health(request: Request) -> Dict[str, Any]:
    """
    Service status for the frontend.

    mode tells which store backend serves requests ("mongo" or "memory").
    """
    return {
        "status": "ok",
        "message": "Real estate API is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "mode": request.app.state.store.backend,
    }


@router.get("/healthz")
async def health_check() -> Dict[str, str]:
    """
    Basic health check endpoint - "Is the app alive?"

    - Always returns 200 OK if the app is running
    - Doesn't check external dependencies

    URL: GET /health/healthz
    """
    logger.debug("Health check called")
    return {
        "status": "healthy",
        "service": "realestate-api"
    }


@router.get("/readyz")
def readiness_check(request: Request, response: Response) -> Dict[str, Any]:
    """
    Readiness check - "Can the app actually handle requests?"

    Pings the document store; answers 503 while it is unreachable.

    URL: GET /health/readyz

    Example response when NOT ready:
        {
            "status": "not_ready",
            "checks": {"store": false}
        }
    """
    logger.debug("Readiness check called")

    checks = {"store": bool(request.app.state.store.ping())}
    is_ready = all(checks.values())

    if not is_ready:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        logger.warning("App not ready - store ping failed")

    return {
        "status": "ready" if is_ready else "not_ready",
        "checks": checks
    }
