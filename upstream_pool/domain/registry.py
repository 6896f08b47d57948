"""Multi-type upstream pool registry."""
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from upstream_pool.domain.models import Hint, Upstream
from upstream_pool.domain.pool import Pool

logger = logging.getLogger(__name__)

TypeLoader = Callable[[str], Awaitable[List[Upstream]]]
TypeInit = Callable[[str], Optional[Dict[str, Any]]]


class UpstreamPool:
    """Routes sampling and feedback to one lazily created Pool per type.

    Pools are never evicted, so the registry grows with the number of
    distinct types sampled over its lifetime.
    """

    def __init__(self, load: TypeLoader, init: Optional[TypeInit] = None):
        self._load = load
        self._init = init
        self._pools: Dict[str, Pool] = {}

    async def sample(self, type: str, hint: Optional[Hint] = None) -> Upstream:
        return await self._pool(type).sample(hint)

    def succeed(self, upstream: Upstream) -> None:
        pool = self._pools.get(upstream.type)
        if pool is not None:
            pool.succeed(upstream)

    def fail(self, upstream: Upstream) -> None:
        pool = self._pools.get(upstream.type)
        if pool is not None:
            pool.fail(upstream)

    def get(self, type: str) -> Optional[Pool]:
        return self._pools.get(type)

    def types(self) -> List[str]:
        return list(self._pools)

    def stats(self, type: str) -> List[Dict[str, object]]:
        pool = self._pools.get(type)
        return [] if pool is None else pool.stats()

    def _pool(self, type: str) -> Pool:
        pool = self._pools.get(type)
        if pool is not None:
            return pool

        overrides = (self._init(type) if self._init else None) or {}

        async def load() -> List[Upstream]:
            return await self._load(type)

        created = Pool(load=load, **overrides)
        self._pools[type] = created
        logger.info(f"Created upstream pool for type {type}: {created.options}")
        return created
