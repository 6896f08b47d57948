"""JSON File-based Store Implementations (DEV_MODE only)."""
import logging
from typing import Any, Dict, List, Optional

from upstream_pool import config_loader
from upstream_pool.domain.interfaces import UpstreamStore
from upstream_pool.domain.models import Upstream

logger = logging.getLogger(__name__)


class UpstreamJsonStore(UpstreamStore):
    """Upstreams kept in the "upstreams" list of the JSON config file.

    The file is re-read on every call so edits are picked up by the next
    pool refresh.
    """

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path

    def list_upstreams(self, type: Optional[str] = None, gt_weight: Optional[float] = None) -> List[Upstream]:
        upstreams = [Upstream.model_validate(u) for u in config_loader.get_upstreams(self.config_path)]
        results = [
            u for u in upstreams
            if (type is None or u.type == type) and (gt_weight is None or u.weight > gt_weight)
        ]
        return sorted(results, key=lambda u: u.created_at)

    def get_upstream(self, upstream_id: str) -> Optional[Upstream]:
        for u in config_loader.get_upstreams(self.config_path):
            if u.get("id") == upstream_id:
                return Upstream.model_validate(u)
        return None

    def create_upstream(self, upstream: Upstream) -> Upstream:
        config = config_loader.load_config(self.config_path)
        if any(u.get("id") == upstream.id for u in config["upstreams"]):
            raise ValueError(f"Upstream {upstream.id} already exists")
        config["upstreams"].append(upstream.model_dump(mode="json"))
        config_loader.save_config(config, self.config_path)
        return upstream

    def update_upstream(self, upstream_id: str, updates: Dict[str, Any]) -> Upstream:
        config = config_loader.load_config(self.config_path)
        upstreams = config["upstreams"]
        for i, u in enumerate(upstreams):
            if u.get("id") == upstream_id:
                updated = Upstream.model_validate(u).with_updates(updates)
                upstreams[i] = updated.model_dump(mode="json")
                config_loader.save_config(config, self.config_path)
                return updated
        raise KeyError(f"Upstream {upstream_id} not found")

    def delete_upstream(self, upstream_id: str) -> None:
        config = config_loader.load_config(self.config_path)
        remaining = [u for u in config["upstreams"] if u.get("id") != upstream_id]
        if len(remaining) == len(config["upstreams"]):
            raise KeyError(f"Upstream {upstream_id} not found")
        config["upstreams"] = remaining
        config_loader.save_config(config, self.config_path)
