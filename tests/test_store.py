"""Tests for rate-limit state and stores."""

import json
import threading
import time
from unittest.mock import MagicMock, patch

import pytest

from vectorify import InMemoryRateLimitStore, RateLimitState, RateLimitStore, RedisRateLimitStore

# =============================================================================
# RateLimitState Tests
# =============================================================================


class TestRateLimitState:
    """Tests for the RateLimitState data model."""

    def test_negative_remaining_is_rejected(self):
        with pytest.raises(AssertionError, match="remaining must be >= 0"):
            RateLimitState(remaining=-1, reset_time=100.0, updated_at=50.0)

    def test_is_frozen(self):
        state = RateLimitState(remaining=1, reset_time=100.0, updated_at=50.0)
        with pytest.raises(AttributeError):
            state.remaining = 2  # type: ignore

    def test_seconds_until_reset(self):
        state = RateLimitState(remaining=1, reset_time=100.0, updated_at=50.0)
        assert state.seconds_until_reset(now=70.0) == 30.0
        assert state.seconds_until_reset(now=130.0) == -30.0

    def test_is_stale_when_reset_time_has_passed(self):
        state = RateLimitState(remaining=1, reset_time=100.0, updated_at=50.0)
        assert not state.is_stale(now=99.0)
        assert state.is_stale(now=100.0)
        assert state.is_stale(now=101.0)

    def test_to_dict(self):
        state = RateLimitState(remaining=3, reset_time=100.5, updated_at=40.25)
        assert state.to_dict() == {"remaining": 3, "reset_time": 100.5, "updated_at": 40.25}

    def test_json_round_trip_preserves_remaining_and_reset_time(self):
        now = time.time()
        state = RateLimitState(remaining=7, reset_time=now + 42.123456, updated_at=now)

        restored = RateLimitState.from_dict(json.loads(json.dumps(state.to_dict())))

        assert restored.remaining == state.remaining
        assert restored.reset_time == state.reset_time
        assert restored == state

    def test_from_dict_clamps_negative_remaining(self):
        state = RateLimitState.from_dict({"remaining": -5, "reset_time": 100, "updated_at": 50})
        assert state.remaining == 0

    def test_from_dict_defaults_updated_at_to_reset_time(self):
        state = RateLimitState.from_dict({"remaining": 1, "reset_time": 100})
        assert state.updated_at == 100.0

    def test_from_dict_rejects_missing_fields(self):
        with pytest.raises(ValueError, match="Invalid rate-limit state"):
            RateLimitState.from_dict({"remaining": 1})

    def test_from_dict_rejects_non_numeric_fields(self):
        with pytest.raises(ValueError):
            RateLimitState.from_dict({"remaining": "many", "reset_time": 100})


# =============================================================================
# InMemoryRateLimitStore Tests
# =============================================================================


class TestInMemoryRateLimitStore:
    """Tests for the process-local store."""

    def test_is_a_rate_limit_store(self):
        assert isinstance(InMemoryRateLimitStore(), RateLimitStore)

    def test_get_missing_key_returns_none(self):
        assert InMemoryRateLimitStore().get("api:rate_limit") is None

    def test_set_then_get(self):
        store = InMemoryRateLimitStore()
        state = RateLimitState(remaining=4, reset_time=time.time() + 30, updated_at=time.time())

        store.set("api:rate_limit", state, ttl_seconds=40)

        assert store.get("api:rate_limit") == state

    def test_set_overwrites_previous_state(self):
        store = InMemoryRateLimitStore()
        first = RateLimitState(remaining=4, reset_time=100.0, updated_at=10.0)
        second = RateLimitState(remaining=0, reset_time=200.0, updated_at=20.0)

        store.set("k", first, ttl_seconds=60)
        store.set("k", second, ttl_seconds=60)

        assert store.get("k") == second

    def test_keys_are_independent(self):
        store = InMemoryRateLimitStore()
        state = RateLimitState(remaining=4, reset_time=100.0, updated_at=10.0)
        store.set("a", state, ttl_seconds=60)
        assert store.get("b") is None

    def test_entry_expires_after_ttl(self):
        store = InMemoryRateLimitStore()
        state = RateLimitState(remaining=4, reset_time=100.0, updated_at=10.0)

        with patch("vectorify._store.time.monotonic", return_value=1000.0):
            store.set("k", state, ttl_seconds=10)
        with patch("vectorify._store.time.monotonic", return_value=1009.9):
            assert store.get("k") == state
        with patch("vectorify._store.time.monotonic", return_value=1010.0):
            assert store.get("k") is None

    def test_delete(self):
        store = InMemoryRateLimitStore()
        store.set("k", RateLimitState(remaining=1, reset_time=100.0, updated_at=10.0), ttl_seconds=60)
        store.delete("k")
        assert store.get("k") is None

    def test_delete_missing_key_is_noop(self):
        InMemoryRateLimitStore().delete("missing")

    def test_non_positive_ttl_is_rejected(self):
        store = InMemoryRateLimitStore()
        with pytest.raises(AssertionError, match="ttl_seconds must be > 0"):
            store.set("k", RateLimitState(remaining=1, reset_time=100.0, updated_at=10.0), ttl_seconds=0)

    def test_concurrent_writers_leave_a_consistent_entry(self):
        store = InMemoryRateLimitStore()
        states = [RateLimitState(remaining=i, reset_time=100.0, updated_at=10.0) for i in range(20)]

        threads = [
            threading.Thread(target=store.set, args=("k", s, 60)) for s in states
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert store.get("k") in states


# =============================================================================
# RedisRateLimitStore Tests
# =============================================================================


class TestRedisRateLimitStore:
    """Tests for the Redis-backed store (Redis client mocked)."""

    def test_set_uses_setex_with_json_value(self):
        redis_client = MagicMock()
        store = RedisRateLimitStore(redis_client)
        state = RateLimitState(remaining=0, reset_time=1005.0, updated_at=1000.0)

        store.set("api:rate_limit", state, ttl_seconds=15)

        redis_client.setex.assert_called_once()
        key, ttl, value = redis_client.setex.call_args.args
        assert key == "api:rate_limit"
        assert ttl == 15
        assert json.loads(value) == {"remaining": 0, "reset_time": 1005.0, "updated_at": 1000.0}

    def test_get_decodes_bytes(self):
        redis_client = MagicMock()
        redis_client.get.return_value = b'{"remaining": 2, "reset_time": 1010.0, "updated_at": 1000.0}'
        store = RedisRateLimitStore(redis_client)

        state = store.get("api:rate_limit")

        redis_client.get.assert_called_once_with("api:rate_limit")
        assert state == RateLimitState(remaining=2, reset_time=1010.0, updated_at=1000.0)

    def test_get_accepts_str(self):
        """Clients created with decode_responses=True return str."""
        redis_client = MagicMock()
        redis_client.get.return_value = '{"remaining": 2, "reset_time": 1010.0, "updated_at": 1000.0}'
        assert RedisRateLimitStore(redis_client).get("k").remaining == 2

    def test_get_missing_key_returns_none(self):
        redis_client = MagicMock()
        redis_client.get.return_value = None
        assert RedisRateLimitStore(redis_client).get("k") is None

    def test_get_malformed_value_raises(self):
        redis_client = MagicMock()
        redis_client.get.return_value = b"not-json"
        with pytest.raises(ValueError):
            RedisRateLimitStore(redis_client).get("k")

    def test_delete(self):
        redis_client = MagicMock()
        RedisRateLimitStore(redis_client).delete("k")
        redis_client.delete.assert_called_once_with("k")

    def test_redis_errors_propagate(self):
        """The store does not swallow errors; the tracker does."""
        redis_client = MagicMock()
        redis_client.get.side_effect = ConnectionError("redis down")
        with pytest.raises(ConnectionError):
            RedisRateLimitStore(redis_client).get("k")

    def test_from_url(self):
        with patch("redis.Redis.from_url") as mock_from_url:
            store = RedisRateLimitStore.from_url("redis://localhost:6379/0")

        mock_from_url.assert_called_once_with("redis://localhost:6379/0")
        assert isinstance(store, RedisRateLimitStore)
