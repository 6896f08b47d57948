"""Postgres Store Implementations."""
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from upstream_pool.adapters.postgres.models import UpstreamRow
from upstream_pool.domain.interfaces import UpstreamStore
from upstream_pool.domain.models import Upstream

logger = logging.getLogger(__name__)


def to_dict(obj) -> Optional[Dict[str, Any]]:
    if not obj:
        return None
    return {c.name: getattr(obj, c.name) for c in obj.__table__.columns}


def to_upstream(obj) -> Optional[Upstream]:
    d = to_dict(obj)
    if d is None:
        return None
    # nullable JSON columns come back as None
    for k in ("headers", "searchs", "auth"):
        d[k] = d.get(k) or {}
    return Upstream.model_validate({k: v for k, v in d.items() if v is not None})


class PostgresUpstreamStore(UpstreamStore):
    def __init__(self, db: Session):
        self.db = db

    def list_upstreams(self, type: Optional[str] = None, gt_weight: Optional[float] = None) -> List[Upstream]:
        query = self.db.query(UpstreamRow)
        if type is not None:
            query = query.filter(UpstreamRow.type == type)
        if gt_weight is not None:
            query = query.filter(UpstreamRow.weight > gt_weight)
        return [to_upstream(o) for o in query.order_by(UpstreamRow.created_at).all()]

    def get_upstream(self, upstream_id: str) -> Optional[Upstream]:
        obj = self.db.query(UpstreamRow).filter(UpstreamRow.id == upstream_id).first()
        return to_upstream(obj)

    def create_upstream(self, upstream: Upstream) -> Upstream:
        obj = UpstreamRow(**upstream.model_dump())
        self.db.add(obj)
        self.db.commit()
        return upstream

    def update_upstream(self, upstream_id: str, updates: Dict[str, Any]) -> Upstream:
        obj = self.db.query(UpstreamRow).filter(UpstreamRow.id == upstream_id).first()
        if not obj:
            raise KeyError(f"Upstream {upstream_id} not found")

        # validate before touching the row
        updated = to_upstream(obj).with_updates(updates)
        for k, v in updated.model_dump(exclude={"id", "created_at"}).items():
            setattr(obj, k, v)

        self.db.commit()
        return updated

    def delete_upstream(self, upstream_id: str) -> None:
        obj = self.db.query(UpstreamRow).filter(UpstreamRow.id == upstream_id).first()
        if not obj:
            raise KeyError(f"Upstream {upstream_id} not found")
        self.db.delete(obj)
        self.db.commit()
