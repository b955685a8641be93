"""
In-memory expiring cache for fixture lists, scans and team leaders.

Each cache is an explicit object with a fixed time-to-live and an injected
clock, built once per process (see ``football_edge.main.lifespan``) and
passed by reference to the services that need it.  Tests pass a fake
clock to step over the TTL without sleeping.

Semantics:
    - created on miss, read on hit while unexpired
    - an expired entry is invisible from the moment its TTL elapses and is
      evicted on the first read or write after that
    - values are deep-copied on the way in and out, so callers never share
      mutable state with a stored entry
    - writes are last-writer-wins; two identical scans racing on the same
      key both compute and the later ``set`` simply replaces the earlier one
"""

import copy
import json
import logging
import time
from typing import Any, Callable, Generic, Optional, TypeVar

from cachetools import TTLCache

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAXSIZE = 512


class ExpiringCache(Generic[T]):
    """TTL cache keyed by deterministic request-parameter strings."""

    def __init__(
        self,
        ttl_seconds: float,
        maxsize: int = DEFAULT_MAXSIZE,
        clock: Callable[[], float] = time.monotonic,
        name: str = "cache",
    ):
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds!r}")
        self.ttl_seconds = ttl_seconds
        self.name = name
        self._entries: TTLCache = TTLCache(maxsize=maxsize, ttl=ttl_seconds, timer=clock)

    @staticmethod
    def make_key(**params: Any) -> str:
        """Stable key: sorted-key JSON of the parameters."""
        return json.dumps(params, sort_keys=True, default=str)

    def get(self, key: str) -> Optional[T]:
        self._entries.expire()
        value = self._entries.get(key)
        if value is None:
            return None
        logger.debug("%s hit: %s", self.name, key)
        return copy.deepcopy(value)

    def set(self, key: str, value: T) -> None:
        self._entries[key] = copy.deepcopy(value)

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        self._entries.expire()
        return len(self._entries)
