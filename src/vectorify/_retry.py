"""
Retry coordination for Vectorify API calls.

A *logical call* (what the caller asked for) is executed as a bounded sequence
of *physical attempts* (requests actually sent). Each attempt's outcome decides
what happens next:

| outcome                      | action                                          |
|------------------------------|-------------------------------------------------|
| 2xx                          | record quota, return the response               |
| 429 Too Many Requests        | record quota, cooldown (Retry-After), retry     |
| 5xx                          | exponential backoff, retry                      |
| Timeout / ConnectionError    | exponential backoff, retry                      |
| other 4xx                    | no retry, return None                           |

429 backoff is driven by the server's own hint; 5xx and transport backoff is
exponential and capped because the server gives no hint.

Example:
    >>> from vectorify._retry import RetryCoordinator
    >>> coordinator = RetryCoordinator(tracker=tracker, max_attempts=3)
    >>> response = coordinator.execute(lambda: http.request("GET", url))
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from enum import Enum

import requests

from vectorify._rate_limit import RETRY_AFTER_HEADER, RateLimitTracker
from vectorify._utils import interruptible_sleep, new_call_id, parse_int_header, raise_if_cancelled

# =============================================================================
# Exceptions
# =============================================================================


class RetriesExhaustedError(Exception):
    """
    Base class for errors raised when all attempts of a logical call are used up.

    Attributes:
        attempts: Number of physical attempts made.
        response: The response of the last attempt.

    Example:
        >>> try:
        ...     client.post("upserts", json=payload)
        ... except RetriesExhaustedError as e:
        ...     print(f"Gave up after {e.attempts} attempts: {e}")
    """

    def __init__(self, message: str, attempts: int, response: requests.Response | None = None):
        super().__init__(message)
        self.attempts = attempts
        self.response = response


class RateLimitExceededError(RetriesExhaustedError):
    """
    Raised when every attempt of a call was answered with HTTP 429.

    Signals that the quota policy is exhausted for this call, not that a single
    response was bad. Callers typically reschedule the work later.

    Attributes:
        retry_after: The last Retry-After hint in seconds, if the server sent one.
    """

    def __init__(self, attempts: int, response: requests.Response | None = None, retry_after: int | None = None):
        super().__init__(
            f"Rate limit exceeded (HTTP 429) after {attempts} attempt(s)",
            attempts=attempts,
            response=response,
        )
        self.retry_after = retry_after


class ServerErrorExhaustedError(RetriesExhaustedError):
    """
    Raised when every attempt of a call was answered with a 5xx status.

    Attributes:
        status_code: Status code of the last response.
    """

    def __init__(self, status_code: int, attempts: int, response: requests.Response | None = None):
        super().__init__(
            f"Server error (HTTP {status_code}) persisted after {attempts} attempt(s)",
            attempts=attempts,
            response=response,
        )
        self.status_code = status_code


# =============================================================================
# Outcome Classification
# =============================================================================


class AttemptOutcome(Enum):
    """
    Classification of one physical attempt.

    Attributes:
        SUCCESS: 2xx (or any other non-error status) - the call is done.
        CLIENT_ERROR: 4xx other than 429 - rejected, never retried.
        RATE_LIMITED: 429 - cooldown, then retry.
        SERVER_ERROR: 5xx - backoff, then retry.
        TRANSPORT_FAILURE: No response received - backoff, then retry.
    """
    SUCCESS = "SUCCESS"
    CLIENT_ERROR = "CLIENT_ERROR"
    RATE_LIMITED = "RATE_LIMITED"
    SERVER_ERROR = "SERVER_ERROR"
    TRANSPORT_FAILURE = "TRANSPORT_FAILURE"

    @classmethod
    def from_status_code(cls, status_code: int) -> AttemptOutcome:
        """
        Classify a response by its status code.

        Example:
            >>> AttemptOutcome.from_status_code(503)
            <AttemptOutcome.SERVER_ERROR: 'SERVER_ERROR'>
        """
        if status_code == 429:
            return cls.RATE_LIMITED
        if status_code >= 500:
            return cls.SERVER_ERROR
        if status_code >= 400:
            return cls.CLIENT_ERROR
        return cls.SUCCESS


# =============================================================================
# Coordinator
# =============================================================================


class RetryCoordinator:
    """
    Executes one logical call as up to `max_attempts` physical attempts.

    Before every attempt the tracker may apply a preventive delay; after every
    response it records the observed quota. The coordinator holds no per-call
    state, so one instance may serve many concurrent calls.

    Args:
        tracker: Rate-limit tracker. If None, quota tracking is skipped.
        max_attempts: Maximum number of physical attempts (default: 3).
        backoff_factor: Base delay for 5xx/transport backoff (default: 1.0).
            Delay after attempt N = backoff_factor * 2 ** (N - 1), capped at max_backoff.
        max_backoff: Maximum single backoff delay in seconds (default: 60.0).
        logger: Logger for retry messages. If None, uses this module's logger.

    Raises:
        RateLimitExceededError: If every attempt returned 429.
        ServerErrorExhaustedError: If every attempt returned 5xx.
        requests.ConnectionError / requests.Timeout: If the last attempt failed at transport level.
        CallCancelledError: If the caller's cancel_event was set.
    """

    TRANSPORT_EXCEPTIONS: tuple[type[Exception], ...] = (
        requests.ConnectionError,
        requests.Timeout,
    )

    def __init__(
        self,
        tracker: RateLimitTracker | None = None,
        max_attempts: int = 3,
        backoff_factor: float = 1.0,
        max_backoff: float = 60.0,
        logger: logging.Logger | None = None,
    ):
        assert max_attempts >= 1, f"max_attempts must be >= 1, got {max_attempts}"
        assert backoff_factor > 0, f"backoff_factor must be > 0, got {backoff_factor}"
        assert max_backoff > 0, f"max_backoff must be > 0, got {max_backoff}"

        self.tracker = tracker
        self.max_attempts = max_attempts
        self.backoff_factor = backoff_factor
        self.max_backoff = max_backoff
        self._logger = logger or logging.getLogger(__name__)

    def backoff_delay(self, attempt: int) -> float:
        """
        Return the backoff before the attempt following `attempt` (1-based).

        Example:
            >>> RetryCoordinator().backoff_delay(1), RetryCoordinator().backoff_delay(2)
            (1.0, 2.0)
        """
        return float(min(self.backoff_factor * (2 ** (attempt - 1)), self.max_backoff))

    def execute(
        self,
        send: Callable[[], requests.Response],
        call_id: str | None = None,
        cancel_event: threading.Event | None = None,
    ) -> requests.Response | None:
        """
        Run the logical call.

        Args:
            send: Sends one physical request and returns its response.
            call_id: Identifier used to correlate log lines. Generated if None.
            cancel_event: Optional event that aborts the call at any suspension point.

        Returns:
            The successful response, or None if the request was rejected (4xx other than 429).
        """
        prefix = f"{(call_id or new_call_id())[:26]:<26}"
        attempt = 0

        while attempt < self.max_attempts:
            attempt += 1
            has_more = attempt < self.max_attempts

            if self.tracker is not None:
                self.tracker.check_before_request(cancel_event=cancel_event, log_prefix=prefix)
            raise_if_cancelled(cancel_event)

            try:
                response = send()
            except self.TRANSPORT_EXCEPTIONS as e:
                if not has_more:
                    self._logger.error(
                        f"{prefix} | Retry | ❌ Attempt {attempt}/{self.max_attempts} failed: {e}. "
                        f"No attempts left."
                    )
                    raise
                self._backoff(attempt, AttemptOutcome.TRANSPORT_FAILURE, str(e), prefix, cancel_event)
                continue

            outcome = AttemptOutcome.from_status_code(response.status_code)

            if outcome is AttemptOutcome.SUCCESS:
                if self.tracker is not None and 200 <= response.status_code < 300:
                    self.tracker.record_success(response.headers, log_prefix=prefix)
                return response

            if outcome is AttemptOutcome.CLIENT_ERROR:
                self._logger.warning(
                    f"{prefix} | Retry | Client error encountered (HTTP {response.status_code}): "
                    f"{response.text}"
                )
                return None

            if outcome is AttemptOutcome.RATE_LIMITED:
                if self.tracker is not None:
                    self.tracker.record_rate_limited(
                        response.headers, cancel_event=cancel_event, log_prefix=prefix
                    )
                if not has_more:
                    self._logger.error(
                        f"{prefix} | Retry | ❌ Rate limit exceeded after {attempt} attempt(s)."
                    )
                    raise RateLimitExceededError(
                        attempts=attempt,
                        response=response,
                        retry_after=_retry_after_of(response),
                    )
                self._logger.warning(
                    f"{prefix} | Retry | Attempt {attempt}/{self.max_attempts} rate limited (HTTP 429). Retrying..."
                )
                continue

            # SERVER_ERROR: no quota bookkeeping, server errors carry no trustworthy quota signal
            if not has_more:
                self._logger.error(
                    f"{prefix} | Retry | ❌ Server error (HTTP {response.status_code}) "
                    f"after {attempt} attempt(s)."
                )
                raise ServerErrorExhaustedError(
                    status_code=response.status_code,
                    attempts=attempt,
                    response=response,
                )
            self._backoff(attempt, outcome, f"HTTP {response.status_code}", prefix, cancel_event)

        raise RuntimeError(
            f"{prefix} | Retry | 🌀 Sanity check | Retry loop ended after {attempt} attempt(s) "
            f"without a terminal outcome."
        )

    def _backoff(
        self,
        attempt: int,
        outcome: AttemptOutcome,
        reason: str,
        prefix: str,
        cancel_event: threading.Event | None,
    ) -> None:
        delay = self.backoff_delay(attempt)
        self._logger.warning(
            f"{prefix} | Retry | Attempt {attempt}/{self.max_attempts} failed "
            f"({outcome.value}: {reason}). Retrying in {delay:.1f}s..."
        )
        interruptible_sleep(delay, cancel_event)


def _retry_after_of(response: requests.Response) -> int | None:
    return parse_int_header(response.headers, RETRY_AFTER_HEADER)
