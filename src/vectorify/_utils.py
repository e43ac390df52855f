"""
Utility functions for the Vectorify SDK.

This module provides internal helper functions used throughout the client.
These functions are not part of the public API and may change without notice.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Mapping

from ulid import ULID


class CallCancelledError(Exception):
    """
    Raised when a caller cancels a logical call while it is suspended or about to send.

    Attributes:
        waited: Seconds spent in the interrupted suspension (0 when raised before sending).

    Example:
        >>> cancel = threading.Event()
        >>> try:
        ...     client.post("upserts", json=payload, cancel_event=cancel)
        ... except CallCancelledError:
        ...     print("Call aborted by caller")
    """

    def __init__(self, message: str = "Call cancelled by caller", waited: float = 0.0):
        super().__init__(message)
        self.waited = waited


def raise_if_cancelled(cancel_event: threading.Event | None) -> None:
    """Raise CallCancelledError if the given event is set."""
    if cancel_event is not None and cancel_event.is_set():
        raise CallCancelledError()


def interruptible_sleep(seconds: float, cancel_event: threading.Event | None = None) -> None:
    """
    Suspend the calling thread for the given duration.

    When a cancellation event is given, the suspension wakes up as soon as the
    event is set and raises CallCancelledError instead of completing.

    Args:
        seconds: Sleep duration in seconds. Non-positive values return immediately.
        cancel_event: Optional event used by the caller to abort the suspension.

    Raises:
        CallCancelledError: If cancel_event is set before or during the sleep.

    Example:
        >>> interruptible_sleep(1.5)
        >>> cancel = threading.Event()
        >>> interruptible_sleep(30.0, cancel_event=cancel)  # returns early if cancel.set()
    """
    if seconds <= 0:
        raise_if_cancelled(cancel_event)
        return

    if cancel_event is None:
        time.sleep(seconds)
        return

    started = time.monotonic()
    if cancel_event.wait(timeout=seconds):
        waited = time.monotonic() - started
        raise CallCancelledError(
            f"Call cancelled by caller after waiting {waited:.2f}s",
            waited=waited,
        )


def get_header(headers: Mapping[str, str] | None, name: str) -> str | None:
    """
    Look up an HTTP header value, tolerating the transport's header-name casing.

    Tries the exact name first, then its lowercase form.

    Args:
        headers: Response headers (plain dict or requests' CaseInsensitiveDict).
        name: Header name, e.g. "Retry-After".

    Returns:
        The header value, or None if not present.
    """
    if not headers:
        return None

    value = headers.get(name)
    if value is None:
        value = headers.get(name.lower())
    return value


def parse_int_header(headers: Mapping[str, str] | None, name: str) -> int | None:
    """
    Read an integer-valued header.

    Returns:
        The parsed integer, or None if the header is missing or not an integer.
    """
    raw = get_header(headers, name)
    if raw is None:
        return None
    try:
        return int(str(raw).strip())
    except (TypeError, ValueError):
        return None


def new_call_id() -> str:
    """Return a new ULID used to correlate the log lines of one logical call."""
    return str(ULID())
