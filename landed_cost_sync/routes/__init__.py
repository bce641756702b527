"""
Route aggregator — mounts all routers under /api/v1 prefix.

Health routes are exported separately for main.py to mount at root.
Version: 1.0.0
"""
from fastapi import APIRouter

from landed_cost_sync.routes.landed_cost_sync import router as landed_cost_sync_router
from landed_cost_sync.routes.health import router as health_router

v1_router = APIRouter(prefix="/api/v1")

v1_router.include_router(landed_cost_sync_router)

__all__ = ["v1_router", "health_router"]
