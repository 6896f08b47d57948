"""Domain interfaces for upstream persistence."""
import asyncio
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from upstream_pool.domain.models import Upstream
from upstream_pool.domain.registry import TypeLoader


class UpstreamStore(ABC):
    @abstractmethod
    def list_upstreams(self, type: Optional[str] = None, gt_weight: Optional[float] = None) -> List[Upstream]: pass
    @abstractmethod
    def get_upstream(self, upstream_id: str) -> Optional[Upstream]: pass
    @abstractmethod
    def create_upstream(self, upstream: Upstream) -> Upstream: pass
    @abstractmethod
    def update_upstream(self, upstream_id: str, updates: Dict[str, Any]) -> Upstream: pass
    @abstractmethod
    def delete_upstream(self, upstream_id: str) -> None: pass


def store_loader(store: UpstreamStore) -> TypeLoader:
    """Adapt a store into a pool loader returning the positively weighted upstreams of a type."""
    async def load(type: str) -> List[Upstream]:
        return await asyncio.to_thread(store.list_upstreams, type=type, gt_weight=0)
    return load
