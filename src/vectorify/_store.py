"""
Shared rate-limit state and the stores that hold it.

The rate-limit state is a small advisory record shared by every process talking
to the same API. Stores are dumb, TTL-respecting key-value mappings: they do not
interpret the state, and no locking is performed across processes (last writer wins).

Available implementations:
    - InMemoryRateLimitStore: Process-local store (threads of one process share it). Default.
    - RedisRateLimitStore: Shared store backed by Redis, for multi-process coordination.

Example (multi-process):
    >>> from vectorify._store import RedisRateLimitStore
    >>> store = RedisRateLimitStore.from_url("redis://localhost:6379/0")
    >>> client = Client(api_key="...", store=store)
"""

from __future__ import annotations

import json
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Self, override

# =============================================================================
# Data Model
# =============================================================================


@dataclass(frozen=True)
class RateLimitState:
    """
    Last known API quota, as observed by any process.

    Attributes:
        remaining: Number of requests believed still permitted before reset (>= 0).
        reset_time: UNIX timestamp at which `remaining` is expected to reset.
        updated_at: UNIX timestamp at which the state was written.

    Example:
        >>> state = RateLimitState(remaining=3, reset_time=time.time() + 60, updated_at=time.time())
        >>> state.seconds_until_reset()
        59.99...
    """

    remaining: int
    reset_time: float
    updated_at: float

    def __post_init__(self) -> None:
        assert self.remaining >= 0, f"remaining must be >= 0, got {self.remaining}"

    def seconds_until_reset(self, now: float | None = None) -> float:
        """Return seconds left until reset_time (negative when the state is stale)."""
        return self.reset_time - (time.time() if now is None else now)

    def is_stale(self, now: float | None = None) -> bool:
        """Return True if reset_time has already passed."""
        return self.seconds_until_reset(now) <= 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "remaining": self.remaining,
            "reset_time": self.reset_time,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """
        Build a state from its serialized form.

        Raises:
            ValueError: If a field is missing or has an invalid value.
        """
        try:
            return cls(
                remaining=max(0, int(data["remaining"])),
                reset_time=float(data["reset_time"]),
                updated_at=float(data.get("updated_at", data["reset_time"])),
            )
        except (KeyError, TypeError) as e:
            raise ValueError(f"Invalid rate-limit state: {data!r}") from e


# =============================================================================
# Abstract Base Class
# =============================================================================


class RateLimitStore(ABC):
    """
    Key-value contract used to share RateLimitState between processes.

    Implementations may raise on I/O failures; the RateLimitTracker treats any
    failure as "no shared state" and never lets it break a call.

    Example:
        >>> class MyStore(RateLimitStore):
        ...     def get(self, key): ...
        ...     def set(self, key, state, ttl_seconds): ...
        ...     def delete(self, key): ...
    """

    @abstractmethod
    def get(self, key: str) -> RateLimitState | None:
        """Return the state stored under key, or None if absent or expired."""
        pass

    @abstractmethod
    def set(self, key: str, state: RateLimitState, ttl_seconds: int) -> None:
        """Store the state under key; it must expire after ttl_seconds."""
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove the state stored under key (no-op if absent)."""
        pass


# =============================================================================
# In-Memory Implementation
# =============================================================================


class InMemoryRateLimitStore(RateLimitStore):
    """
    Process-local store with TTL support.

    Threads of the same process share the state; other processes do not see it.
    Use RedisRateLimitStore when several processes share one API quota.

    This store is thread-safe.
    """

    def __init__(self) -> None:
        self._data: dict[str, tuple[RateLimitState, float]] = {}
        self._lock = threading.Lock()

    @override
    def get(self, key: str) -> RateLimitState | None:
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            state, expires_at = entry
            if time.monotonic() >= expires_at:
                del self._data[key]
                return None
            return state

    @override
    def set(self, key: str, state: RateLimitState, ttl_seconds: int) -> None:
        assert ttl_seconds > 0, f"ttl_seconds must be > 0, got {ttl_seconds}"
        with self._lock:
            self._data[key] = (state, time.monotonic() + ttl_seconds)

    @override
    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)


# =============================================================================
# Redis Implementation
# =============================================================================


class RedisRateLimitStore(RateLimitStore):
    """
    Shared store backed by Redis.

    States are stored as JSON strings with `SETEX`, so Redis evicts them on its
    own once the TTL elapses, even if no process clears them.

    Example:
        >>> import redis
        >>> store = RedisRateLimitStore(redis.Redis(host="localhost", port=6379))
        >>> # or
        >>> store = RedisRateLimitStore.from_url("redis://localhost:6379/0")

    Args:
        redis_client: A synchronous `redis.Redis` client (or compatible object
            exposing get/setex/delete).
    """

    def __init__(self, redis_client: Any):
        assert redis_client is not None, "redis_client cannot be None."
        self._redis = redis_client

    @classmethod
    def from_url(cls, redis_url: str) -> RedisRateLimitStore:
        """
        Create a store from a Redis connection URL.

        Raises:
            ImportError: If the 'redis' package is not installed.
        """
        try:
            import redis
        except ImportError as e:
            raise ImportError(
                "RedisRateLimitStore requires the 'redis' package. "
                "Install with: pip install 'vectorify[redis]'"
            ) from e

        return cls(redis.Redis.from_url(redis_url))

    @override
    def get(self, key: str) -> RateLimitState | None:
        raw = self._redis.get(key)
        if raw is None:
            return None
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        return RateLimitState.from_dict(json.loads(raw))

    @override
    def set(self, key: str, state: RateLimitState, ttl_seconds: int) -> None:
        assert ttl_seconds > 0, f"ttl_seconds must be > 0, got {ttl_seconds}"
        self._redis.setex(key, ttl_seconds, json.dumps(state.to_dict()))

    @override
    def delete(self, key: str) -> None:
        self._redis.delete(key)
