from fastapi import APIRouter, Depends, HTTPException
import logging

from upstream_pool.core.config import settings
from upstream_pool.dependencies import get_upstream_store
from upstream_pool.domain.interfaces import UpstreamStore

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health/live")
async def liveness():
    """Liveness probe: Service is running."""
    return {"status": "ok", "checks": {"api": "ok"}}


@router.get("/health/ready")
async def readiness(store: UpstreamStore = Depends(get_upstream_store)):
    """Readiness probe: upstream store reachable."""
    health = {"status": "ok", "checks": {}}
    backend = settings.STORE_BACKEND.lower()

    try:
        store.list_upstreams(type="__health__")
        health["checks"][backend] = "ok"
    except Exception as e:
        logger.error(f"Health check failed ({backend}): {e}")
        health["checks"][backend] = "failed"
        health["status"] = "failed"

    if health["status"] == "failed":
        raise HTTPException(status_code=503, detail=health)

    return health
