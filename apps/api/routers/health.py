"""
Health check endpoints.
"""

from fastapi import APIRouter, Depends

from config import settings
from routers.dependencies import get_event_store
from routers.errors import status_response
from services.errors import StorageError
from services.event_store import EventStore

router = APIRouter()


@router.get("/")
async def hello():
    """Returns a status message."""
    return status_response(200, "It works!")


@router.get("/health")
async def health_check(store: EventStore = Depends(get_event_store)):
    """
    Health check endpoint.
    Returns overall system health status.
    """
    health_status = {
        "status": "healthy",
        "api": "up",
        "database": "unknown",
        "event_store_backend": settings.EVENT_STORE_BACKEND,
        "upstreams": "mock" if settings.USE_MOCK_UPSTREAMS else "http",
    }

    try:
        await store.ping()
        health_status["database"] = "up"
    except StorageError as e:
        health_status["database"] = f"down: {e}"
        health_status["status"] = "degraded"

    return health_status


@router.get("/health/live")
async def liveness_check():
    """Kubernetes-style liveness probe."""
    return {"alive": True}
