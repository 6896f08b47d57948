"""Admin API Router - Upstream records and pool inspection.

Upstream payloads returned here never include auth values.
"""
import logging
from typing import Any, Dict, Literal, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, ValidationError

from upstream_pool.dependencies import get_upstream_pool, get_upstream_store
from upstream_pool.domain.errors import NoUpstreamError
from upstream_pool.domain.interfaces import UpstreamStore
from upstream_pool.domain.models import Hint, Upstream
from upstream_pool.domain.registry import UpstreamPool
from upstream_pool.errors import raise_pool_error

router = APIRouter()
logger = logging.getLogger(__name__)


# ============ Pydantic Models ============

class UpstreamCreate(BaseModel):
    id: Optional[str] = None
    type: str
    host: str
    path: Optional[str] = None
    headers: Dict[str, str] = Field(default_factory=dict)
    searchs: Dict[str, str] = Field(default_factory=dict)
    auth: Dict[str, Any] = Field(default_factory=dict)
    interval: float = Field(default=0.001, ge=0.001)
    weight: float = Field(default=0, ge=0)


class UpstreamUpdate(BaseModel):
    type: Optional[str] = None
    host: Optional[str] = None
    path: Optional[str] = None
    headers: Optional[Dict[str, str]] = None
    searchs: Optional[Dict[str, str]] = None
    auth: Optional[Dict[str, Any]] = None
    interval: Optional[float] = Field(default=None, ge=0.001)
    weight: Optional[float] = Field(default=None, ge=0)


class HintBody(BaseModel):
    type: Literal["same", "diff"]
    upstream: str


class SampleRequest(BaseModel):
    hint: Optional[HintBody] = None


# ============ Upstreams ============

@router.get("/upstreams")
async def list_upstreams(
    type: Optional[str] = None,
    store: UpstreamStore = Depends(get_upstream_store)
):
    """List upstreams, optionally of one type."""
    return {"upstreams": [u.public_dict() for u in store.list_upstreams(type=type)]}


@router.get("/upstreams/{upstream_id}")
async def get_upstream(
    upstream_id: str,
    store: UpstreamStore = Depends(get_upstream_store)
):
    upstream = store.get_upstream(upstream_id)
    if not upstream:
        raise_pool_error("NOT_FOUND", 404, f"Upstream {upstream_id} not found")
    return upstream.public_dict()


@router.post("/upstreams", status_code=201)
async def create_upstream(
    data: UpstreamCreate,
    store: UpstreamStore = Depends(get_upstream_store)
):
    """Create a new upstream."""
    values = data.model_dump(exclude_none=True)
    if data.id and store.get_upstream(data.id):
        raise_pool_error("VALIDATION_ERROR", 400, f"Upstream {data.id} already exists")

    upstream = store.create_upstream(Upstream(**values))
    logger.info(f"Created upstream {upstream.id} of type {upstream.type}")
    return upstream.public_dict()


@router.patch("/upstreams/{upstream_id}")
async def update_upstream(
    upstream_id: str,
    data: UpstreamUpdate,
    store: UpstreamStore = Depends(get_upstream_store)
):
    try:
        updated = store.update_upstream(upstream_id, data.model_dump(exclude_unset=True))
    except KeyError:
        raise_pool_error("NOT_FOUND", 404, f"Upstream {upstream_id} not found")
    except ValidationError as e:
        raise_pool_error("VALIDATION_ERROR", 400, str(e))
    logger.info(f"Updated upstream {upstream_id}")
    return updated.public_dict()


@router.delete("/upstreams/{upstream_id}")
async def delete_upstream(
    upstream_id: str,
    store: UpstreamStore = Depends(get_upstream_store)
):
    try:
        store.delete_upstream(upstream_id)
    except KeyError:
        raise_pool_error("NOT_FOUND", 404, f"Upstream {upstream_id} not found")
    logger.info(f"Deleted upstream {upstream_id}")
    return {"success": True}


# ============ Pools ============

@router.get("/pools/{type}")
async def get_pool(
    type: str,
    pool: UpstreamPool = Depends(get_upstream_pool)
):
    """Feedback state of the cached upstreams of a type."""
    return {"type": type, "upstreams": pool.stats(type)}


@router.post("/pools/{type}:sample")
async def sample_upstream(
    type: str,
    data: Optional[SampleRequest] = None,
    pool: UpstreamPool = Depends(get_upstream_pool)
):
    """Sample an upstream of a type the same way clients do."""
    hint = None
    if data is not None and data.hint is not None:
        hint = Hint(type=data.hint.type, upstream=data.hint.upstream)
    try:
        upstream = await pool.sample(type, hint)
    except NoUpstreamError as e:
        raise_pool_error("NO_UPSTREAM", 503, str(e), {"type": type})
    return upstream.public_dict()


@router.post("/pools/{type}/upstreams/{upstream_id}:succeed")
async def succeed_upstream(
    type: str,
    upstream_id: str,
    pool: UpstreamPool = Depends(get_upstream_pool)
):
    _feedback(pool, type, upstream_id, succeeded=True)
    return {"success": True, "upstreams": pool.stats(type)}


@router.post("/pools/{type}/upstreams/{upstream_id}:fail")
async def fail_upstream(
    type: str,
    upstream_id: str,
    pool: UpstreamPool = Depends(get_upstream_pool)
):
    _feedback(pool, type, upstream_id, succeeded=False)
    return {"success": True, "upstreams": pool.stats(type)}


def _feedback(pool: UpstreamPool, type: str, upstream_id: str, succeeded: bool) -> None:
    # Check membership here: the pool treats unknown upstreams as a programming error.
    target = pool.get(type)
    if target is None or upstream_id not in {s["key"] for s in target.stats()}:
        raise_pool_error("NOT_FOUND", 404, f"Upstream {upstream_id} is not cached for type {type}")
    if succeeded:
        target.succeed(upstream_id)
    else:
        target.fail(upstream_id)
