from __future__ import annotations

import functools
import hashlib
import json
import logging
from typing import Any, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def get_ordered_hash(value: Any) -> str:
    """SHA-256 hex digest of ``value`` with its top-level keys sorted.

    Only the top level is reordered; nested objects hash in their given order.
    """
    if isinstance(value, dict):
        value = {key: value[key] for key in sorted(value)}
    payload = json.dumps(value, ensure_ascii=False, default=str)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def use_cache_if_present(fn: F, cache: Optional[Any] = None) -> F:
    """Wrap ``fn`` so identical arguments are answered from ``cache``.

    The cache key is ``{"args": [...], "kwargs": {...}}``; results must be
    JSON-serialisable to be stored.
    """
    if cache is None:
        return fn

    @functools.wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        key = {"args": list(args), "kwargs": kwargs}
        cached = cache.get(key)
        if cached is not None:
            logger.debug("Cache hit for %s", getattr(fn, "__name__", fn))
            return cached
        result = fn(*args, **kwargs)
        cache.set(key, result)
        return result

    return wrapper  # type: ignore[return-value]
