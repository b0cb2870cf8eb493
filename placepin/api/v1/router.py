"""API v1 router module."""

from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from placepin.api.v1.places import router as places_router
from placepin.core.config import settings

router = APIRouter(default_response_class=JSONResponse)
router.include_router(places_router)


@router.get("/health", tags=["health"])
async def health_check(request: Request) -> dict[str, Any]:
    """Report service and map readiness."""
    session = getattr(request.app.state, "session", None)
    if session is None:
        return {"status": "starting", "version": settings.version}

    diagnostics = session.client.diagnostics()
    healthy = session.map.is_ready and not diagnostics.corrupted
    return {
        "status": "healthy" if healthy else "degraded",
        "version": settings.version,
        "provider": session.client.provider.name,
        "service_ready": diagnostics.initialized,
        "map_ready": session.map.is_ready,
    }
