"""Single-type upstream pool.

Keeps a periodically refreshed snapshot of the upstreams of one group and
hands them out by weighted random sampling. Each upstream carries three
pieces of feedback state, all keyed by the upstream id:

    failures   consecutive failures since the last success
    times      when the upstream was last handed out
    weights    effective weight, falls back to the static weight

The pool relies on cooperative scheduling: state is only touched between
awaits, so no locking is done. Sampling suspends at two points, the loader
call during a refresh and the per-upstream interval wait.
"""
import asyncio
import json
import logging
import random
import time
from typing import Awaitable, Callable, Dict, List, Optional

from upstream_pool.domain.errors import NoUpstreamError
from upstream_pool.domain.models import Hint, PoolOptions, Upstream, UpstreamOrId, pick_id

logger = logging.getLogger(__name__)
verbose_logger = logging.getLogger(f"{__name__}.verbose")

Loader = Callable[[], Awaitable[List[Upstream]]]


class Pool:
    def __init__(self,
                 load: Loader,
                 ttl: float = 60,
                 min_failures: int = 0,
                 min_weight: float = 0.01,
                 decay: float = 0.8):
        self._load = load
        self._options = PoolOptions(
            ttl=ttl,
            min_failures=min_failures,
            min_weight=min_weight,
            decay=decay,
        )
        self._caches: List[Upstream] = []
        self._failures: Dict[str, int] = {}
        self._times: Dict[str, float] = {}
        self._weights: Dict[str, float] = {}
        self._expires_at: float = 0.0

    @property
    def options(self) -> PoolOptions:
        return self._options

    async def sample(self, hint: Optional[Hint] = None) -> Upstream:
        """Pick an upstream, waiting out its interval if it was picked recently.

        Raises:
            NoUpstreamError: the pool has no candidate upstream.
        """
        await self._sync()

        candidates = self._candidates(hint)
        if not candidates:
            raise NoUpstreamError()

        upstream = self._draw(candidates)

        key = self._key(upstream)
        duration = self._time(key) + upstream.interval - time.time()
        if duration > 0:
            await asyncio.sleep(duration)
        self._times[key] = time.time()
        logger.debug(f"sample: {len(candidates)} {key}")
        return upstream

    def succeed(self, upstream: UpstreamOrId) -> None:
        """Reset the failure count and restore the static weight."""
        found = self._resolve(upstream)
        key = self._key(found)
        logger.debug(f"succeed: {key}")
        self._failures[key] = 0
        self._weights[key] = found.weight

    def fail(self, upstream: UpstreamOrId) -> None:
        """Count a failure and decay the weight once the threshold is reached."""
        found = self._resolve(upstream)
        key = self._key(found)
        failure = self._failure(key) + 1
        self._failures[key] = failure
        if failure >= self._options.min_failures:
            weight = self._weight(key, found.weight) * self._options.decay
            logger.debug(f"fail: {key}: {failure} {weight}")
            self._weights[key] = weight
        else:
            logger.debug(f"fail: {key}: {failure} {self._weight(key, found.weight)}")

    def stats(self) -> List[Dict[str, object]]:
        results = []
        for x in self._caches:
            key = self._key(x)
            results.append({
                "key": key,
                "failure": self._failure(key),
                "time": self._time(key),
                "weight": self._weight(key, x.weight),
            })
        return results

    def _candidates(self, hint: Optional[Hint]) -> List[Upstream]:
        if hint is None:
            return list(self._caches)

        hinted = pick_id(hint.upstream)
        if hint.type == "same":
            filtered = [x for x in self._caches if x.id == hinted]
        elif hint.type == "diff":
            filtered = [x for x in self._caches if x.id != hinted]
        else:
            filtered = []
        # an empty filter falls back to the whole cache
        return filtered if filtered else list(self._caches)

    def _draw(self, candidates: List[Upstream]) -> Upstream:
        total = sum(self._weight(self._key(x), x.weight) for x in candidates)
        rand = random.random() * total
        for x in candidates:
            rand -= self._weight(self._key(x), x.weight)
            # an all-zero pool yields its first upstream
            if rand <= 0:
                return x
        raise NoUpstreamError("No Upstream: weighted draw selected nothing")

    async def _sync(self) -> None:
        now = time.time()
        if self._expires_at > now:
            logger.debug("sync: ignored")
            return

        upstreams = list(await self._load())
        keys = {self._key(x) for x in upstreams}

        for x in self._caches:
            key = self._key(x)
            if key not in keys:
                self._times.pop(key, None)
                self._failures.pop(key, None)
                # effective weight is kept

        self._caches = upstreams
        self._expires_at = now + self._options.ttl
        logger.debug(f"sync: {len(self._caches)} {self._expires_at}")
        if verbose_logger.isEnabledFor(logging.DEBUG):
            verbose_logger.debug(json.dumps(self.stats()))

    def _resolve(self, upstream: UpstreamOrId) -> Upstream:
        if isinstance(upstream, Upstream):
            return upstream
        found = next((x for x in self._caches if x.id == upstream), None)
        assert found is not None, f"Unknown upstream: {upstream}"
        return found

    def _key(self, upstream: Upstream) -> str:
        return str(pick_id(upstream))

    def _failure(self, key: str) -> int:
        return self._failures.get(key, 0)

    def _time(self, key: str) -> float:
        return self._times.get(key, 0.0)

    def _weight(self, key: str, weight: float) -> float:
        return self._weights.get(key, weight)
