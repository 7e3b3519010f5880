"""API route handlers."""
from fastapi import APIRouter

from alt_text.api.routes import alt_text, health

api_router = APIRouter(prefix="/api")

# Health routes must come first so /api/health is not taken as a collection
api_router.include_router(health.router)
api_router.include_router(alt_text.router)

metrics_router = health.metrics_router
