"""
Health routes — liveness and readiness checks.

/health only says the API process is up. /health/ready also pings Redis,
which holds the sync state, the job index and the Celery broker.
Version: 1.0.0
"""
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from landed_cost_sync.container import get_redis

logger = logging.getLogger(__name__)
router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    return {"status": "healthy"}


@router.get("/health/ready")
def readiness_check(redis_client=Depends(get_redis)):
    try:
        redis_client.ping()
    except Exception as e:
        logger.warning(f"Readiness check failed: redis unreachable: {e}")
        return JSONResponse(status_code=503, content={"status": "unavailable", "redis": "unreachable"})
    return {"status": "ready", "redis": "ok"}
