"""
Health check endpoints for service status monitoring.

The quote engine has no external dependencies, so health reflects the
in-memory session store only.
"""
from fastapi import APIRouter
from fastapi.responses import JSONResponse
from datetime import datetime, UTC
from typing import Dict, Any
import logging

from app.services.quote_session_service import quote_session_store

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
async def health_check() -> JSONResponse:
    """
    Returns:
        - status: "healthy"
        - timestamp: Current UTC timestamp
        - services: Status of each component
    """
    checks: Dict[str, Any] = {
        "status": "healthy",
        "timestamp": datetime.now(UTC).isoformat(),
        "services": {
            "quote_sessions": {
                "status": "healthy",
                "active_sessions": await quote_session_store.count(),
            }
        }
    }
    return JSONResponse(content=checks, status_code=200)


@router.get("/live")
async def liveness_check() -> JSONResponse:
    """
    Kubernetes-style liveness probe.
    Returns 200 if the service is running (not deadlocked).
    """
    return JSONResponse(
        content={"alive": True, "timestamp": datetime.now(UTC).isoformat()},
        status_code=200
    )
