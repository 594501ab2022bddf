"""Health check and API info endpoints."""

from datetime import datetime, timezone

from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])

ENDPOINTS = [
    "GET /api/v1/health",
    "GET /api/v1/info",
    "POST /api/v1/upload",
    "POST /api/v1/upload/batch",
    "POST /api/v1/upload/assets",
    "GET /api/v1/upload/:id",
    "DELETE /api/v1/upload/:id",
]


@router.get("/health")
async def health_check(request: Request):
    return {
        "status": "healthy",
        "version": request.app.version,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "services": {
            "api": "running",
            "temp_storage": "ready" if request.app.state.temp_dir_ready else "unavailable",
        },
    }


@router.get("/info")
async def api_info(request: Request):
    return {
        "name": "Vertical Veo 3 API",
        "version": request.app.version,
        "description": "AI-powered vertical video generation API",
        "endpoints": ENDPOINTS,
    }
