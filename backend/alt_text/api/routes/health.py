"""
Health check endpoints.

GET /api/health          - Health check for the API
GET /api/health/provider - Active vision provider and batch settings
GET /metrics             - Prometheus metrics endpoint
"""
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from alt_text.api.dependencies import get_generator, get_settings
from alt_text.core.config import Settings
from alt_text.services.generation import AltTextGenerator

router = APIRouter(prefix="/health", tags=["health"])
metrics_router = APIRouter(tags=["metrics"])


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("", response_model=Dict[str, Any])
async def health_check(app_settings: Settings = Depends(get_settings)) -> Dict[str, Any]:
    """Returns the current status of the API."""
    return {
        "status": "healthy",
        "timestamp": _now(),
        "service": "alt-text-generator",
        "version": app_settings.api_version,
    }


@router.get("/ready")
async def readiness_check() -> Dict[str, Any]:
    """Checks if the service is ready to accept traffic."""
    return {"status": "ready", "timestamp": _now()}


@router.get("/live")
async def liveness_check() -> Dict[str, Any]:
    """Checks if the service is alive."""
    return {"status": "alive", "timestamp": _now()}


@router.get("/provider")
async def get_provider_info(
    app_settings: Settings = Depends(get_settings),
    generator: AltTextGenerator = Depends(get_generator),
) -> Dict[str, Any]:
    """
    Get the active vision provider and the settings batch clients need.

    The batch runner reads ``batch_size``, ``save_mode`` and
    ``generation_timeout`` from here.
    """
    return {
        "status": "success",
        "timestamp": _now(),
        **generator.provider.describe(),
        "batch_size": app_settings.batch_size,
        "save_mode": app_settings.save_mode,
        "generation_timeout": app_settings.generation_timeout,
        "max_length": app_settings.max_length,
        "language": app_settings.language,
        "collections": app_settings.collections,
    }


@metrics_router.get("/metrics")
async def metrics() -> Response:
    """Returns metrics in Prometheus format for scraping."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
