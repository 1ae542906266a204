from __future__ import annotations

from dataclasses import dataclass
from time import time

from django.core.cache import cache
from django.http import HttpRequest


@dataclass
class LimitResult:
    allowed: bool
    remaining: int
    retry_after: int


def _key(namespace: str, ident: str) -> str:
    return f"rl:{namespace}:{ident}"


def client_ip(request: HttpRequest) -> str:
    return request.META.get("REMOTE_ADDR") or "unknown"


def rate_limit(namespace: str, ident: str, limit: int, window_seconds: int) -> LimitResult:
    """Fixed-window counter; one cache key per (namespace, ident, window)."""
    now = int(time())
    bucket = now // window_seconds
    bucket_key = f"{_key(namespace, ident)}:{bucket}"
    retry_after = (bucket + 1) * window_seconds - now

    # add() is a no-op when the key exists, so incr() is the only writer.
    cache.add(bucket_key, 0, timeout=window_seconds)
    try:
        current = cache.incr(bucket_key)
    except ValueError:
        # evicted between add() and incr()
        cache.set(bucket_key, 1, timeout=window_seconds)
        current = 1
    if current > limit:
        return LimitResult(False, 0, retry_after)
    return LimitResult(True, limit - current, 0)


def cooldown(namespace: str, ident: str, seconds: int) -> int:
    """Return 0 and arm the cooldown, or the seconds left while it is armed."""
    key = f"{_key(namespace, ident)}:cooldown"
    if cache.add(key, int(time()) + seconds, timeout=seconds):
        return 0
    until = cache.get(key) or 0
    return max(1, until - int(time()))
