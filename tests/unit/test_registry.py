"""Tests for the multi-type UpstreamPool registry."""
import asyncio
from unittest.mock import AsyncMock, Mock, patch

import pytest

from upstream_pool.domain.errors import NoUpstreamError
from upstream_pool.domain.models import Hint, Upstream
from upstream_pool.domain.registry import UpstreamPool


UPSTREAMS = {
    "search": [
        Upstream(id="s1", type="search", host="https://s1.example.com", weight=1),
        Upstream(id="s2", type="search", host="https://s2.example.com", weight=1),
    ],
    "geo": [
        Upstream(id="g1", type="geo", host="https://g1.example.com", weight=1),
    ],
}


@pytest.fixture
def load():
    async def _load(type: str):
        return list(UPSTREAMS.get(type, []))
    return AsyncMock(side_effect=_load)


@pytest.fixture(autouse=True)
def no_sleep():
    with patch("asyncio.sleep", new=AsyncMock()) as mock_sleep:
        yield mock_sleep


@pytest.mark.asyncio
async def test_sample_routes_by_type(load):
    registry = UpstreamPool(load=load)

    assert (await registry.sample("geo")).id == "g1"
    assert (await registry.sample("search")).id in {"s1", "s2"}

    load.assert_any_await("geo")
    load.assert_any_await("search")
    assert sorted(registry.types()) == ["geo", "search"]


@pytest.mark.asyncio
async def test_pool_created_once_per_type(load):
    registry = UpstreamPool(load=load)

    await registry.sample("search")
    pool = registry.get("search")
    await registry.sample("search")

    assert registry.get("search") is pool
    assert load.await_count == 1


@pytest.mark.asyncio
async def test_concurrent_first_access_creates_one_pool(load):
    init = Mock(return_value=None)
    registry = UpstreamPool(load=load, init=init)

    await asyncio.gather(*(registry.sample("search") for _ in range(5)))

    init.assert_called_once_with("search")
    assert registry.types() == ["search"]


@pytest.mark.asyncio
async def test_init_overrides_options(load):
    registry = UpstreamPool(load=load, init=lambda type: {"ttl": 5, "decay": 0.5} if type == "geo" else None)

    await registry.sample("geo")
    await registry.sample("search")

    assert registry.get("geo").options.ttl == 5
    assert registry.get("geo").options.decay == 0.5
    assert registry.get("geo").options.min_weight == 0.01
    assert registry.get("search").options.ttl == 60


@pytest.mark.asyncio
async def test_invalid_override_is_fatal(load):
    registry = UpstreamPool(load=load, init=lambda type: {"decay": 2})

    with pytest.raises(AssertionError):
        await registry.sample("search")


@pytest.mark.asyncio
async def test_unknown_type_raises_no_upstream(load):
    registry = UpstreamPool(load=load)

    with pytest.raises(NoUpstreamError):
        await registry.sample("missing")


@pytest.mark.asyncio
async def test_feedback_routes_to_owning_pool(load):
    registry = UpstreamPool(load=load, init=lambda type: {"decay": 0.5})
    chosen = await registry.sample("search", Hint(type="same", upstream="s1"))

    registry.fail(chosen)
    weights = {s["key"]: s["weight"] for s in registry.stats("search")}
    assert weights == {"s1": 0.5, "s2": 1}

    registry.succeed(chosen)
    weights = {s["key"]: s["weight"] for s in registry.stats("search")}
    assert weights == {"s1": 1, "s2": 1}


def test_feedback_for_unseen_type_is_ignored(load):
    registry = UpstreamPool(load=load)
    upstream = UPSTREAMS["geo"][0]

    registry.succeed(upstream)
    registry.fail(upstream)

    assert registry.types() == []
    assert registry.stats("geo") == []
