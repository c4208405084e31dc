import inspect
import json
import logging
import time
from collections.abc import MutableMapping
from functools import wraps
from typing import Any, Callable

from constants import CACHE_PREFIX, CACHE_TTL_SECONDS


def cache_key(query_name: str, params: dict[str, Any]) -> str:
    """Return the cache key for one named query and its parameters.

    Every parameter takes part in the key, so distinct queries or parameter
    sets never collide.
    """
    return f"{query_name}:{json.dumps(params, sort_keys=True, default=str)}"


class ResponseCache:
    """Best-effort TTL cache of JSON-serializable query results.

    Entries live in ``store`` (any str -> str mapping) under
    ``prefix + key`` as ``{"data": ..., "timestamp": ...}``. Reads never
    raise and writes never fail the caller.
    """

    def __init__(
        self,
        store: MutableMapping[str, str] | None = None,
        ttl_seconds: float = CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
        prefix: str = CACHE_PREFIX,
    ):
        self.store = {} if store is None else store
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self.prefix = prefix

    def get(self, key: str) -> Any | None:
        full_key = self.prefix + key
        try:
            raw = self.store.get(full_key)
            if raw is None:
                return None
            entry = json.loads(raw)
            data = entry["data"]
            age = self.clock() - float(entry["timestamp"])
        except Exception:
            logging.warning("Discarding unreadable cache entry %s", key)
            self._evict(full_key)
            return None
        if age > self.ttl_seconds:
            self._evict(full_key)
            return None
        return data

    def set(self, key: str, data: Any) -> None:
        try:
            self.store[self.prefix + key] = json.dumps(
                {"data": data, "timestamp": self.clock()}
            )
        except Exception as e:
            logging.warning("Could not cache %s: %s", key, e)

    def clear(self) -> None:
        for full_key in [k for k in list(self.store) if k.startswith(self.prefix)]:
            self._evict(full_key)

    def _evict(self, full_key: str) -> None:
        try:
            self.store.pop(full_key, None)
        except Exception as e:
            logging.warning("Could not evict cache entry %s: %s", full_key, e)


def cached(query_name: str):
    """Cache an async named query ``func(client, *params, cache=None)``.

    The key is built from ``query_name`` and every bound parameter except the
    client. Without a ``cache`` argument the query runs uncached.
    """

    def decorator(func):
        signature = inspect.signature(func)

        @wraps(func)
        async def wrapper(client, *args, cache: ResponseCache | None = None, **kwargs):
            if cache is None:
                return await func(client, *args, **kwargs)
            bound = signature.bind(client, *args, **kwargs)
            bound.apply_defaults()
            params = dict(list(bound.arguments.items())[1:])
            key = cache_key(query_name, params)

            hit = cache.get(key)
            if hit is not None:
                logging.debug("Cache hit for %s", key)
                return hit

            result = await func(client, *args, **kwargs)
            cache.set(key, result)
            return result

        return wrapper

    return decorator
