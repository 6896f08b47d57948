"""Upstream domain models."""
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Literal, Optional, Union

import httpx
from pydantic import BaseModel, ConfigDict, Field

RESETTABLE_FIELDS = ("headers", "searchs", "auth", "interval", "weight")


class Upstream(BaseModel):
    """A registered backend endpoint.

    Upstreams are immutable snapshots of a stored record. Two snapshots
    refer to the same endpoint when their ids are equal.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    type: str
    host: str
    path: Optional[str] = None
    headers: Dict[str, str] = Field(default_factory=dict)
    searchs: Dict[str, str] = Field(default_factory=dict)
    auth: Dict[str, Any] = Field(default_factory=dict)
    interval: float = Field(default=0.001, ge=0.001)
    weight: float = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None

    def url(self, path: Optional[str] = None, searchs: Optional[Dict[str, str]] = None) -> httpx.URL:
        """Build the target URL.

        Args:
            path: Overrides the stored path. Appended below the host path.
            searchs: Extra query params, merged over the stored ones.
        """
        url = httpx.URL(self.host)
        path = self.path if path is None else path
        if path is not None:
            base = url.path if url.path.endswith("/") else url.path + "/"
            url = url.copy_with(path=base + path)
        for k, v in {**self.searchs, **(searchs or {})}.items():
            url = url.copy_add_param(k, v)
        return url

    def link(self, path: Optional[str] = None, searchs: Optional[Dict[str, str]] = None) -> str:
        return str(self.url(path=path, searchs=searchs))

    def with_updates(self, updates: Dict[str, Any]) -> "Upstream":
        """Return a validated copy with `updates` applied and `updated_at` stamped."""
        data = self.model_dump()
        for key, value in updates.items():
            if key in ("id", "created_at"):
                continue
            # null resets a field to its default
            if value is None and key in RESETTABLE_FIELDS:
                value = Upstream.model_fields[key].get_default(call_default_factory=True)
            data[key] = value
        data["updated_at"] = datetime.now(timezone.utc)
        return Upstream.model_validate(data)

    def public_dict(self) -> Dict[str, Any]:
        """Serializable view with auth values masked."""
        data = self.model_dump(mode="json")
        data["auth"] = {k: "[REDACTED]" for k in self.auth}
        return data


UpstreamOrId = Union[Upstream, str]


def pick_id(upstream: UpstreamOrId) -> str:
    return upstream.id if isinstance(upstream, Upstream) else upstream


def pick_id_or_none(upstream: Optional[UpstreamOrId]) -> Optional[str]:
    return None if upstream is None else pick_id(upstream)


@dataclass(frozen=True)
class Hint:
    """Selection bias towards the same or a different upstream."""
    type: Literal["same", "diff"]
    upstream: UpstreamOrId


@dataclass(frozen=True)
class PoolOptions:
    ttl: float = 60
    min_failures: int = 0
    min_weight: float = 0.01
    decay: float = 0.8

    def __post_init__(self):
        assert self.ttl >= 1, f"ttl must be >= 1, got {self.ttl}"
        assert self.min_failures >= 0, f"min_failures must be >= 0, got {self.min_failures}"
        assert self.min_weight >= 0, f"min_weight must be >= 0, got {self.min_weight}"
        assert 0 < self.decay < 1, f"decay must be in (0, 1), got {self.decay}"
