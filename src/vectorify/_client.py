"""
Authenticated HTTP client for the Vectorify API.

The Client is the single entry point for talking to the API. Every call goes
through the same pipeline:

    Client.request()
      -> RetryCoordinator.execute()          (bounded attempts, backoff)
           -> RateLimitTracker.check_before_request()   (preventive delay)
           -> HttpClient.request()                      (one physical request)
           -> RateLimitTracker.record_*()               (quota bookkeeping)

Example:
    >>> from vectorify import Client
    >>> client = Client(api_key="my-key")
    >>> response = client.get("upserts")
    >>> if response is None:
    ...     print("Request rejected (4xx)")
"""

from __future__ import annotations

import logging
import threading
from typing import Any

import requests

from vectorify._config import VECTORIFY, ConfigValidationError, RateLimitConfig
from vectorify._http import HttpClient, RequestsHttpClient
from vectorify._rate_limit import RateLimitTracker
from vectorify._retry import RetryCoordinator
from vectorify._store import InMemoryRateLimitStore, RateLimitStore, RedisRateLimitStore
from vectorify._utils import new_call_id

# Sentinel distinguishing "no store argument" (pick one from config) from store=None (disabled)
_DEFAULT_STORE: Any = object()


class Client:
    """
    HTTP client with API-key authentication, quota coordination and retries.

    Requests rejected by the API with a 4xx status (other than 429) are not
    errors for this client: the call returns None so the caller can decide what
    to do. Transient failures are retried; when retries run out a
    RetriesExhaustedError subclass (or the transport exception) is raised.

    The Client keeps no per-call state; thread safety of a shared instance is
    bounded by its HttpClient (see RequestsHttpClient).

    Args:
        api_key: Vectorify API key. If None, uses VECTORIFY.config.client.api_key.
            Surrounding whitespace is stripped.
        timeout: Request timeout in seconds. If None, uses config.
        store: Store for sharing quota state between processes.
            If omitted: RedisRateLimitStore when `rate_limit.redis_url` is configured,
            otherwise an InMemoryRateLimitStore. Pass None to disable coordination.
        logger: Logger used by this client and its components.
            If None, the `vectorify.*` module loggers are used.
        max_attempts: Maximum physical attempts per call. If None, uses config.
        base_url: API base URL. If None, uses config.
        http_client: Transport. If None, uses RequestsHttpClient.
        rate_limit: Quota tracking settings. If None, uses VECTORIFY.config.rate_limit.
            With `enabled=False` no store is selected by default, but 429 cooldowns still apply.

    Raises:
        ConfigValidationError: If the API key is empty, the timeout is not positive,
            or the rate_limit settings are invalid.

    Example:
        >>> import redis
        >>> from vectorify import Client, RedisRateLimitStore
        >>> client = Client(
        ...     api_key="my-key",
        ...     timeout=60,
        ...     store=RedisRateLimitStore(redis.Redis()),
        ... )
    """

    def __init__(
        self,
        api_key: str | None = None,
        timeout: int | None = None,
        store: RateLimitStore | None = _DEFAULT_STORE,
        logger: logging.Logger | None = None,
        max_attempts: int | None = None,
        base_url: str | None = None,
        http_client: HttpClient | None = None,
        rate_limit: RateLimitConfig | None = None,
    ):
        cfg = VECTORIFY.config.client
        rl_cfg = rate_limit or VECTORIFY.config.rate_limit
        rl_cfg.validate()

        api_key = api_key if api_key is not None else cfg.api_key
        timeout = timeout if timeout is not None else cfg.request_timeout
        max_attempts = max_attempts if max_attempts is not None else cfg.max_attempts
        base_url = base_url if base_url is not None else cfg.base_url

        # Validations (fail fast, never retried)
        if not api_key or not api_key.strip():
            raise ConfigValidationError(
                "api_key", api_key,
                "API key cannot be empty.", section="client"
            )
        if timeout <= 0:
            raise ConfigValidationError(
                "request_timeout", timeout,
                f"Timeout must be positive, got: {timeout}.", section="client"
            )
        if max_attempts <= 0:
            raise ConfigValidationError(
                "max_attempts", max_attempts,
                "Must be greater than 0.", section="client"
            )
        if not base_url:
            raise ConfigValidationError(
                "base_url", base_url,
                "Base URL cannot be empty.", section="client"
            )

        self.api_key = api_key.strip()
        self.timeout = timeout
        self.base_url = base_url.rstrip("/") + "/"
        self.http_client: HttpClient = http_client or RequestsHttpClient()
        self.store = self._resolve_store(store, rl_cfg)
        self._logger = logger or logging.getLogger(__name__)

        # Without a store the tracker still enforces the 429 cooldown, it just shares nothing
        self.tracker = RateLimitTracker(
            store=self.store,
            config=rl_cfg,
            logger=logger,
        )

        self.retry = RetryCoordinator(
            tracker=self.tracker,
            max_attempts=max_attempts,
            backoff_factor=cfg.backoff_factor,
            max_backoff=cfg.max_backoff,
            logger=logger,
        )

    @staticmethod
    def _resolve_store(store: RateLimitStore | None, rl_cfg: RateLimitConfig) -> RateLimitStore | None:
        if store is not _DEFAULT_STORE:
            return store
        if not rl_cfg.enabled:
            return None
        if rl_cfg.redis_url:
            return RedisRateLimitStore.from_url(rl_cfg.redis_url)
        return InMemoryRateLimitStore()

    # -------------------------------------------------------------------------
    # HTTP verbs
    # -------------------------------------------------------------------------

    def get(self, path: str, **kwargs: Any) -> requests.Response | None:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs: Any) -> requests.Response | None:
        return self.request("POST", path, **kwargs)

    def put(self, path: str, **kwargs: Any) -> requests.Response | None:
        return self.request("PUT", path, **kwargs)

    def patch(self, path: str, **kwargs: Any) -> requests.Response | None:
        return self.request("PATCH", path, **kwargs)

    def delete(self, path: str, **kwargs: Any) -> requests.Response | None:
        return self.request("DELETE", path, **kwargs)

    def request(
        self,
        method: str,
        path: str,
        json: Any | None = None,
        headers: dict[str, str] | None = None,
        params: dict[str, Any] | None = None,
        cancel_event: threading.Event | None = None,
    ) -> requests.Response | None:
        """
        Execute a request with quota coordination and automatic retry.

        Args:
            method: HTTP method (GET, POST, PUT, PATCH, DELETE).
            path: API path relative to base_url (e.g. "upserts").
            json: JSON-serializable request body.
            headers: Extra headers, merged over the default ones.
            params: Query string parameters.
            cancel_event: Optional event; setting it aborts the call while it is
                waiting (preventive delay, 429 cooldown or backoff).

        Returns:
            The response, or None if the API rejected the request (4xx other than 429).

        Raises:
            RateLimitExceededError: If every attempt was rate limited.
            ServerErrorExhaustedError: If every attempt returned 5xx.
            requests.ConnectionError / requests.Timeout: If the last attempt could not reach the API.
            CallCancelledError: If cancel_event was set.
        """
        assert method, "🌀 Sanity check | HTTP method can not be empty."
        assert path is not None, "🌀 Sanity check | Path can not be None."

        url = self._build_url(path)
        merged_headers = {**self._default_headers(), **(headers or {})}
        call_id = new_call_id()

        self._logger.debug(f"{call_id} | Client | {method.upper()} {url}")

        def send() -> requests.Response:
            return self.http_client.request(
                method=method,
                url=url,
                json=json,
                headers=merged_headers,
                timeout=self.timeout,
                params=params,
            )

        return self.retry.execute(send, call_id=call_id, cancel_event=cancel_event)

    def _build_url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return self.base_url + path.lstrip("/")

    def _default_headers(self) -> dict[str, str]:
        return {
            "Api-Key": self.api_key,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def __repr__(self) -> str:
        return f"Client(base_url={self.base_url!r}, timeout={self.timeout}, store={type(self.store).__name__})"
