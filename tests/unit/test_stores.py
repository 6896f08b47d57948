"""Tests for the memory and JSON upstream stores and the pool loader adapter."""
import asyncio
import json
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from upstream_pool.adapters.json_store.stores import UpstreamJsonStore
from upstream_pool.adapters.memory_store.stores import MemoryUpstreamStore
from upstream_pool.adapters.postgres.models import Base
from upstream_pool.adapters.postgres.stores import PostgresUpstreamStore
from upstream_pool.domain.interfaces import store_loader
from upstream_pool.domain.models import Upstream

T0 = datetime(2026, 1, 1, tzinfo=timezone.utc)


def seed():
    return [
        Upstream(id="a", type="search", host="https://a.example.com", weight=1, created_at=T0),
        Upstream(id="b", type="search", host="https://b.example.com", weight=0, created_at=T0 + timedelta(seconds=1)),
        Upstream(id="c", type="geo", host="https://c.example.com", weight=2, created_at=T0 + timedelta(seconds=2)),
        Upstream(id="d", type="search", host="https://d.example.com", weight=5, created_at=T0 + timedelta(seconds=3)),
    ]


@pytest.fixture
def sqlite_session():
    engine = create_engine("sqlite://")
    Base.metadata.create_all(engine)
    with Session(engine) as db:
        yield db


@pytest.fixture(params=["memory", "json", "postgres"])
def store(request, tmp_path):
    if request.param == "memory":
        s = MemoryUpstreamStore()
    elif request.param == "json":
        s = UpstreamJsonStore(str(tmp_path / "upstreams.json"))
    else:
        s = PostgresUpstreamStore(request.getfixturevalue("sqlite_session"))
    for u in seed():
        s.create_upstream(u)
    return s


def test_list_filters_and_orders(store):
    assert [u.id for u in store.list_upstreams()] == ["a", "b", "c", "d"]
    assert [u.id for u in store.list_upstreams(type="search")] == ["a", "b", "d"]
    assert [u.id for u in store.list_upstreams(type="search", gt_weight=0)] == ["a", "d"]
    assert store.list_upstreams(type="missing") == []


def test_get_round_trips_fields(store):
    upstream = store.get_upstream("c")

    assert upstream.type == "geo"
    assert upstream.host == "https://c.example.com"
    assert upstream.weight == 2
    assert upstream.interval == 0.001
    assert store.get_upstream("missing") is None


def test_create_duplicate_rejected():
    store = MemoryUpstreamStore(seed())

    with pytest.raises(ValueError):
        store.create_upstream(Upstream(id="a", type="search", host="https://x.example.com"))


def test_update(store):
    updated = store.update_upstream("a", {"weight": 7, "headers": {"x-key": "v"}})

    assert updated.weight == 7
    assert updated.updated_at is not None
    fetched = store.get_upstream("a")
    assert fetched.weight == 7
    assert fetched.headers == {"x-key": "v"}

    with pytest.raises(KeyError):
        store.update_upstream("missing", {"weight": 1})


def test_delete(store):
    store.delete_upstream("a")

    assert store.get_upstream("a") is None
    with pytest.raises(KeyError):
        store.delete_upstream("a")


def test_json_store_reads_file_edits(tmp_path):
    path = tmp_path / "upstreams.json"
    path.write_text(json.dumps({"upstreams": [
        {"id": "a", "type": "search", "host": "https://a.example.com", "weight": 1},
    ]}))
    store = UpstreamJsonStore(str(path))
    assert [u.id for u in store.list_upstreams()] == ["a"]

    config = json.loads(path.read_text())
    config["upstreams"].append({"id": "b", "type": "search", "host": "https://b.example.com", "weight": 1})
    path.write_text(json.dumps(config))

    assert {u.id for u in store.list_upstreams()} == {"a", "b"}


def test_json_store_missing_file_is_empty(tmp_path):
    store = UpstreamJsonStore(str(tmp_path / "missing.json"))

    assert store.list_upstreams() == []


@pytest.mark.asyncio
async def test_store_loader_returns_weighted_upstreams_of_type():
    load = store_loader(MemoryUpstreamStore(seed()))

    assert [u.id for u in await load("search")] == ["a", "d"]
    assert [u.id for u in await load("geo")] == ["c"]
    assert await load("missing") == []


@pytest.mark.asyncio
async def test_store_loader_tolerates_concurrent_writes():
    store = MemoryUpstreamStore(seed())
    load = store_loader(store)

    async def churn():
        for i in range(200):
            store.create_upstream(Upstream(id=f"x{i}", type="search", host="https://x.example.com", weight=1))
            await asyncio.sleep(0)
            store.delete_upstream(f"x{i}")
            await asyncio.sleep(0)

    async def reads():
        return [await load("search") for _ in range(200)]

    _, results = await asyncio.gather(churn(), reads())

    for upstreams in results:
        assert {"a", "d"} <= {u.id for u in upstreams}
    assert [u.id for u in store.list_upstreams(type="search")] == ["a", "b", "d"]
