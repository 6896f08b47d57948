"""Memory Store Implementations."""
from typing import Any, Dict, List, Optional
import logging

from upstream_pool.domain.interfaces import UpstreamStore
from upstream_pool.domain.models import Upstream

logger = logging.getLogger(__name__)


class MemoryUpstreamStore(UpstreamStore):
    def __init__(self, upstreams: Optional[List[Upstream]] = None):
        self._upstreams: Dict[str, Upstream] = {u.id: u for u in upstreams or []}

    def list_upstreams(self, type: Optional[str] = None, gt_weight: Optional[float] = None) -> List[Upstream]:
        results = [
            u for u in list(self._upstreams.values())
            if (type is None or u.type == type) and (gt_weight is None or u.weight > gt_weight)
        ]
        return sorted(results, key=lambda u: u.created_at)

    def get_upstream(self, upstream_id: str) -> Optional[Upstream]:
        return self._upstreams.get(upstream_id)

    def create_upstream(self, upstream: Upstream) -> Upstream:
        if upstream.id in self._upstreams:
            raise ValueError(f"Upstream {upstream.id} already exists")
        self._upstreams[upstream.id] = upstream
        return upstream

    def update_upstream(self, upstream_id: str, updates: Dict[str, Any]) -> Upstream:
        current = self._upstreams.get(upstream_id)
        if current is None:
            raise KeyError(f"Upstream {upstream_id} not found")
        updated = current.with_updates(updates)
        self._upstreams[upstream_id] = updated
        return updated

    def delete_upstream(self, upstream_id: str) -> None:
        if upstream_id not in self._upstreams:
            raise KeyError(f"Upstream {upstream_id} not found")
        del self._upstreams[upstream_id]
