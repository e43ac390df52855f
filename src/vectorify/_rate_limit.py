"""
Server-quota tracking for the Vectorify SDK.

The Vectorify API advertises its remaining quota through the
`X-RateLimit-Remaining` header and enforces it with HTTP 429 responses carrying
a `Retry-After` hint. The RateLimitTracker turns those signals into a shared
RateLimitState and uses it to slow callers down *before* the quota runs out:

- Preventive delay: before each request, callers wait a fraction of the time
  left until reset, proportional to how little quota is left.
- Enforced cooldown: after a 429, the caller that received it blocks until the
  server's hint has elapsed, and every other process sees `remaining=0`.

The state lives in a RateLimitStore so that independent processes sharing one
API key cooperate. It is advisory: reads and writes are not atomic, store
failures are logged and ignored, and the worst outcome of a race is an extra 429.

Example:
    >>> from vectorify._rate_limit import RateLimitTracker
    >>> from vectorify._store import InMemoryRateLimitStore
    >>> tracker = RateLimitTracker(store=InMemoryRateLimitStore())
    >>> tracker.check_before_request()      # may sleep
    >>> response = session.get(url)
    >>> tracker.record_success(response.headers)
"""

from __future__ import annotations

import logging
import math
import threading
import time
from collections.abc import Mapping
from typing import TYPE_CHECKING

from vectorify._store import RateLimitState, RateLimitStore
from vectorify._utils import interruptible_sleep, parse_int_header

if TYPE_CHECKING:
    from vectorify._config import RateLimitConfig

REMAINING_HEADER = "X-RateLimit-Remaining"
RETRY_AFTER_HEADER = "Retry-After"


class RateLimitTracker:
    """
    Owns the shared rate-limit state machine.

    Progressive delay bands (defaults from RateLimitConfig):

    | remaining quota | delay                         |
    |-----------------|-------------------------------|
    | > 2             | none                          |
    | <= 0 (critical) | min(wait, 90s)                |
    | <= 2 (low)      | min(wait / 2, 30s)            |
    | <= 5 (medium)   | min(wait / 4, 10s)            |

    where `wait` is the time left until the stored reset time. The medium band is
    only returned by compute_delay: check_before_request skips the delay entirely
    while remaining is above the low threshold. A state whose
    reset time has passed is stale: it is deleted and no delay is applied.

    This class holds no mutable state of its own and is safe to share between threads.

    Args:
        store: Where the state is shared. None disables coordination entirely.
        config: Thresholds and caps. If None, uses VECTORIFY.config.rate_limit.
        cache_key: Coordination key. If None, uses config.cache_key.
        logger: Logger for rate-limit messages. If None, uses this module's logger.
    """

    def __init__(
        self,
        store: RateLimitStore | None = None,
        config: RateLimitConfig | None = None,
        cache_key: str | None = None,
        logger: logging.Logger | None = None,
    ):
        if config is None:
            from vectorify._config import VECTORIFY
            config = VECTORIFY.config.rate_limit

        self.store = store
        self.config = config
        self.cache_key = cache_key or config.cache_key
        self._logger = logger or logging.getLogger(__name__)

        assert self.cache_key, "cache_key cannot be empty."

    # -------------------------------------------------------------------------
    # Pre-flight
    # -------------------------------------------------------------------------

    def compute_delay(self, state: RateLimitState, now: float | None = None) -> float:
        """
        Compute the preventive delay for the given state.

        Applies every band, including medium. check_before_request only consults
        it once remaining is at or below low_threshold, so the medium band matters
        to callers using compute_delay directly.

        Returns:
            Seconds to wait before sending (0.0 when no delay applies or the state is stale).
        """
        cfg = self.config
        wait_time = state.seconds_until_reset(now)
        if wait_time <= 0:
            return 0.0

        if state.remaining <= cfg.critical_threshold:
            return min(wait_time, cfg.max_wait)
        if state.remaining <= cfg.low_threshold:
            return min(wait_time / 2, cfg.max_low_wait)
        if state.remaining <= cfg.medium_threshold:
            return min(wait_time / 4, cfg.max_medium_wait)
        return 0.0

    def check_before_request(
        self,
        cancel_event: threading.Event | None = None,
        log_prefix: str = "",
    ) -> float:
        """
        Apply the preventive delay, if any, before a request is sent.

        Fails open: a missing store, missing state or failing store means no delay.

        Args:
            cancel_event: Optional event that aborts the delay when set.
            log_prefix: Prefix for log messages (e.g., the call id).

        Returns:
            The delay applied, in seconds.

        Raises:
            CallCancelledError: If cancel_event is set during the delay.
        """
        state = self._read_state(log_prefix)
        if state is None or state.remaining > self.config.low_threshold:
            return 0.0

        now = time.time()
        if state.is_stale(now):
            self._clear_state(log_prefix)
            return 0.0

        delay = self.compute_delay(state, now)
        if delay > 0:
            self._logger.info(
                f"{self._prefix(log_prefix)}Rate limit preventive delay: {delay:.1f}s "
                f"(remaining: {state.remaining})"
            )
            interruptible_sleep(delay, cancel_event)
        return delay

    # -------------------------------------------------------------------------
    # Post-response
    # -------------------------------------------------------------------------

    def record_success(
        self,
        headers: Mapping[str, str] | None,
        log_prefix: str = "",
    ) -> RateLimitState | None:
        """
        Update the shared state from a successful response.

        No-op when the response does not advertise `X-RateLimit-Remaining`.

        Returns:
            The state written, or None if nothing was written.
        """
        remaining = parse_int_header(headers, REMAINING_HEADER)
        if remaining is None:
            return None

        wait_time = self._wait_time_from(headers)
        now = time.time()
        state = RateLimitState(
            remaining=max(0, remaining),
            reset_time=now + wait_time,
            updated_at=now,
        )
        self._write_state(state, wait_time, log_prefix)

        self._logger.debug(
            f"{self._prefix(log_prefix)}Rate limit updated "
            f"(remaining: {state.remaining}, resets in {wait_time:.0f}s)"
        )
        return state

    def record_rate_limited(
        self,
        headers: Mapping[str, str] | None,
        cancel_event: threading.Event | None = None,
        log_prefix: str = "",
    ) -> float:
        """
        Record a 429 response and block the caller for the cooldown.

        Always writes `remaining=0` so other processes back off too, then sleeps
        for `min(wait_time, max_wait)`.

        Returns:
            The cooldown applied, in seconds.

        Raises:
            CallCancelledError: If cancel_event is set during the cooldown.
        """
        wait_time = self._wait_time_from(headers)
        now = time.time()
        state = RateLimitState(remaining=0, reset_time=now + wait_time, updated_at=now)
        self._write_state(state, wait_time, log_prefix)

        cooldown = min(wait_time, self.config.max_wait)
        self._logger.info(
            f"{self._prefix(log_prefix)}Rate limit hit, waiting {cooldown:.1f}s before retry"
        )
        interruptible_sleep(cooldown, cancel_event)
        return cooldown

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _wait_time_from(self, headers: Mapping[str, str] | None) -> float:
        retry_after = parse_int_header(headers, RETRY_AFTER_HEADER)
        if retry_after is None or retry_after <= 0:
            return self.config.default_wait
        return float(retry_after)

    def _ttl_for(self, wait_time: float) -> int:
        return max(1, math.ceil(wait_time + self.config.ttl_buffer))

    @staticmethod
    def _prefix(log_prefix: str) -> str:
        return f"{log_prefix} | " if log_prefix else ""

    def _read_state(self, log_prefix: str) -> RateLimitState | None:
        if self.store is None:
            return None
        try:
            return self.store.get(self.cache_key)
        except Exception as e:
            self._logger.warning(
                f"{self._prefix(log_prefix)}⚠️ Could not read rate limit state "
                f"(key={self.cache_key}): {e}. Proceeding without coordination.",
                exc_info=self._logger.isEnabledFor(logging.DEBUG),
            )
            return None

    def _write_state(self, state: RateLimitState, wait_time: float, log_prefix: str) -> None:
        if self.store is None:
            return
        try:
            self.store.set(self.cache_key, state, self._ttl_for(wait_time))
        except Exception as e:
            self._logger.warning(
                f"{self._prefix(log_prefix)}⚠️ Could not write rate limit state "
                f"(key={self.cache_key}): {e}. Other processes will not see it.",
                exc_info=self._logger.isEnabledFor(logging.DEBUG),
            )

    def _clear_state(self, log_prefix: str) -> None:
        if self.store is None:
            return
        try:
            self.store.delete(self.cache_key)
        except Exception as e:
            self._logger.warning(
                f"{self._prefix(log_prefix)}⚠️ Could not clear stale rate limit state "
                f"(key={self.cache_key}): {e}",
                exc_info=self._logger.isEnabledFor(logging.DEBUG),
            )
