import pytest

from upstream_pool import dependencies
from upstream_pool.core.config import settings


@pytest.fixture(autouse=True)
def memory_backend(monkeypatch):
    """Run every test against a fresh in-memory store and registry."""
    monkeypatch.setattr(settings, "STORE_BACKEND", "memory")
    monkeypatch.setattr(settings, "POOL_OVERRIDES", {})
    dependencies.reset_state()
    yield
    dependencies.reset_state()
