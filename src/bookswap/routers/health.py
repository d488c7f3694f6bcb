"""Health check router for API server monitoring.

This module provides health check endpoints for monitoring the API server
status, database connectivity, and system information.
"""

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from .. import __version__
from ..config import Settings
from ..database import check_database_connection, get_database_info, get_session
from ..dependencies import get_app_settings

SERVICE_NAME = "bookswap-api"

router = APIRouter(
    prefix="/api/health",
    tags=["health"],
    responses={
        503: {"description": "Service unavailable"},
    },
)


def _timestamp() -> str:
    return datetime.utcnow().isoformat() + "Z"


@router.get(
    "/",
    response_model=dict[str, Any],
    summary="Basic health check",
    description="Returns basic health status of the API server",
)
async def health_check() -> dict[str, Any]:
    """Basic health check endpoint.

    Example:
        {
            "status": "healthy",
            "timestamp": "2024-01-01T12:00:00Z",
            "service": "bookswap-api",
            "version": "1.0.0"
        }
    """
    return {
        "status": "healthy",
        "timestamp": _timestamp(),
        "service": SERVICE_NAME,
        "version": __version__,
    }


@router.get(
    "/detailed",
    response_model=dict[str, Any],
    summary="Detailed health check with database connectivity",
    description="Returns detailed health status including database connectivity check",
)
async def detailed_health_check(
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_app_settings),
) -> dict[str, Any]:
    """Detailed health check with database connectivity.

    Args:
        session: Database session for connectivity testing
        settings: Application settings

    Returns:
        Dict[str, Any]: Detailed health status information

    Raises:
        HTTPException: 503 if the database does not answer
    """
    if not check_database_connection(session):
        raise HTTPException(
            status_code=503, detail="Service unavailable - database connectivity issues"
        )

    return {
        "status": "healthy",
        "timestamp": _timestamp(),
        "service": SERVICE_NAME,
        "version": __version__,
        "environment": settings.environment,
        "database": {"status": "connected", "info": get_database_info()},
    }


@router.get(
    "/ready",
    response_model=dict[str, Any],
    summary="Readiness check",
    description="Kubernetes-style readiness check for deployment health checks",
)
async def readiness_check(session: Session = Depends(get_session)) -> dict[str, Any]:
    """Readiness check: ready once the database answers."""
    if not check_database_connection(session):
        raise HTTPException(
            status_code=503, detail="Service not ready - database unavailable"
        )

    return {"ready": True, "timestamp": _timestamp()}


@router.get(
    "/live",
    response_model=dict[str, Any],
    summary="Liveness check",
    description="Kubernetes-style liveness check for container health checks",
)
async def liveness_check() -> dict[str, Any]:
    return {"alive": True, "timestamp": _timestamp()}
