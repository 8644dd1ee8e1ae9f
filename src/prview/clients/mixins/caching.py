from collections.abc import Callable
from functools import wraps
import hashlib
import json
import threading
from typing import Any

from cachetools import TTLCache

from prview.logger import get_logger


class CacheMixin:
    """TTL cache for lookups whose results rarely change within minutes.

    Reads ``cache_ttl`` and ``cache_maxsize`` from the instance when set.
    Failures are never cached: an exception propagates and the next call
    tries again.
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._cache_logger = get_logger(f"{self.__class__.__name__}.CacheMixin")
        self._cache_ttl = getattr(self, "cache_ttl", 300)
        maxsize = getattr(self, "cache_maxsize", 500)
        self._cache: TTLCache[str, Any] = TTLCache(
            maxsize=maxsize, ttl=max(self._cache_ttl, 1)
        )
        self._cache_lock = threading.Lock()

    def _make_cache_key(self, *args: Any, **kwargs: Any) -> str:
        key_data = {
            "args": [str(arg) for arg in args],
            "kwargs": {k: str(v) for k, v in sorted(kwargs.items())},
        }
        key_str = json.dumps(key_data, sort_keys=True)
        return hashlib.sha256(key_str.encode()).hexdigest()

    def with_cache(
        self, key_prefix: str = ""
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """
        Decorator to cache function results.

        Args:
            key_prefix: Prefix for cache keys
        """

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            @wraps(func)
            def wrapper(*args: Any, **kwargs: Any) -> Any:
                if self._cache_ttl <= 0:
                    return func(*args, **kwargs)

                cache_key = (
                    f"{key_prefix}{func.__name__}:"
                    f"{self._make_cache_key(*args, **kwargs)}"
                )

                with self._cache_lock:
                    if cache_key in self._cache:
                        self._cache_logger.debug(f"Cache hit for {cache_key}")
                        return self._cache[cache_key]

                self._cache_logger.debug(f"Cache miss for {cache_key}")
                result = func(*args, **kwargs)

                with self._cache_lock:
                    self._cache[cache_key] = result

                return result

            return wrapper

        return decorator
