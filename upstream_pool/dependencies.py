"""Dependency Injection Module."""
import asyncio
import logging
from typing import Generator, List, Optional

from fastapi import Depends
from sqlalchemy.orm import Session

from upstream_pool.adapters.json_store.stores import UpstreamJsonStore
from upstream_pool.adapters.memory_store.stores import MemoryUpstreamStore
from upstream_pool.adapters.postgres import session as pg_session
from upstream_pool.adapters.postgres.stores import PostgresUpstreamStore
from upstream_pool.core.config import settings
from upstream_pool.domain.interfaces import UpstreamStore, store_loader
from upstream_pool.domain.models import Upstream
from upstream_pool.domain.registry import UpstreamPool

logger = logging.getLogger(__name__)

_memory_store: Optional[MemoryUpstreamStore] = None
_upstream_pool: Optional[UpstreamPool] = None


def _backend() -> str:
    return settings.STORE_BACKEND.lower()


def make_store(db: Optional[Session] = None) -> UpstreamStore:
    """Build the store for the configured backend."""
    global _memory_store
    backend = _backend()
    if backend == "memory":
        if _memory_store is None:
            _memory_store = MemoryUpstreamStore()
        return _memory_store
    if backend == "json":
        return UpstreamJsonStore()
    if backend == "postgres":
        if db is None:
            raise RuntimeError("Postgres store requires a database session")
        return PostgresUpstreamStore(db)
    raise ValueError(f"Unknown STORE_BACKEND: {settings.STORE_BACKEND}")


def get_optional_db() -> Generator[Optional[Session], None, None]:
    if _backend() != "postgres":
        yield None
        return
    yield from pg_session.get_db()


def get_upstream_store(db: Optional[Session] = Depends(get_optional_db)) -> UpstreamStore:
    return make_store(db)


async def load_upstreams(type: str) -> List[Upstream]:
    """Pool loader: positively weighted upstreams of a type from the configured store."""
    if _backend() != "postgres":
        return await store_loader(make_store())(type)

    def query() -> List[Upstream]:
        pg_session.init_engine()
        with pg_session.SessionLocal() as db:
            return PostgresUpstreamStore(db).list_upstreams(type=type, gt_weight=0)

    return await asyncio.to_thread(query)


def get_upstream_pool() -> UpstreamPool:
    """Process-wide pool registry."""
    global _upstream_pool
    if _upstream_pool is None:
        _upstream_pool = UpstreamPool(load=load_upstreams, init=settings.pool_options)
    return _upstream_pool


def reset_state() -> None:
    """Drop the cached store and registry."""
    global _memory_store, _upstream_pool
    _memory_store = None
    _upstream_pool = None
