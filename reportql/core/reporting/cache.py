"""
Result cache for dashboard callers.

The compiler never caches. Callers that re-run the same reports often
(dashboard widgets) own one of these and key it with `cache_key`.
"""

import json
import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from reportql.config import Settings
from reportql.core.sql_ast.models import ReportConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")


def cache_key(table: str, config: ReportConfig | dict[str, Any]) -> str:
    """Deterministic serialization of (table, config)."""
    config = ReportConfig.parse(config)
    payload = {"table": table, "config": config.model_dump(mode="json")}
    return json.dumps(payload, sort_keys=True, separators=(",", ":"))


@dataclass
class _Entry:
    value: Any
    stored_at: float


class ResultCache:
    """
    LRU cache with a fixed TTL and capacity.

    The clock is injected so expiry can be tested without sleeping.
    """

    def __init__(
        self,
        ttl_seconds: float = 45.0,
        capacity: int = 256,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._ttl = ttl_seconds
        self._capacity = capacity
        self._clock = clock
        self._entries: OrderedDict[str, _Entry] = OrderedDict()
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "ResultCache":
        return cls(
            ttl_seconds=settings.cache_ttl_seconds,
            capacity=settings.cache_capacity,
        )

    def get(self, key: str) -> Any | None:
        """Return the fresh value for `key`, or None."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() - entry.stored_at > self._ttl:
                del self._entries[key]
                return None
            self._entries.move_to_end(key)
            return entry.value

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._entries[key] = _Entry(value=value, stored_at=self._clock())
            self._entries.move_to_end(key)
            while len(self._entries) > self._capacity:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Evicted cached result %s", evicted)

    def get_or_compute(self, key: str, compute: Callable[[], T]) -> T:
        """
        Return the cached value, or compute, store and return it.

        `compute` runs outside the lock; two concurrent misses may both
        compute, and the later result wins.
        """
        cached = self.get(key)
        if cached is not None:
            logger.debug("Cache hit")
            return cached

        logger.debug("Cache miss")
        value = compute()
        self.set(key, value)
        return value

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
