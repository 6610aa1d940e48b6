from __future__ import annotations

import time
from typing import Any, Protocol

from django.core.cache import cache as default_cache
from django.core.cache.backends.base import BaseCache


class KeyValueStore(Protocol):
    def get(self, key: str, max_age_seconds: float | None = None) -> Any | None: ...

    def set(self, key: str, value: Any, ttl_seconds: float | None = None) -> None: ...

    def clear(self, key: str) -> None: ...


class CacheKeyValueStore:
    """KeyValueStore backed by a Django cache.

    Values are wrapped with their write time so readers can ask for a
    freshness window independent of the backend expiry.
    """

    def __init__(self, backend: BaseCache | None = None, prefix: str = "charge-planner") -> None:
        self.backend = backend or default_cache
        self.prefix = prefix

    def get(self, key: str, max_age_seconds: float | None = None) -> Any | None:
        envelope = self.backend.get(self._key(key))
        if not isinstance(envelope, dict) or "stored_at" not in envelope:
            return None
        if max_age_seconds is not None and time.time() - envelope["stored_at"] > max_age_seconds:
            return None
        return envelope.get("value")

    def set(self, key: str, value: Any, ttl_seconds: float | None = None) -> None:
        self.backend.set(
            self._key(key),
            {"value": value, "stored_at": time.time()},
            timeout=ttl_seconds,
        )

    def clear(self, key: str) -> None:
        self.backend.delete(self._key(key))

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}"
