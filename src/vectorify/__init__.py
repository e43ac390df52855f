"""
Vectorify SDK for Python.

A Python SDK for the Vectorify API with built-in retries and rate-limit
coordination across threads and processes sharing one API key.

Quick Start:
    >>> from vectorify import Vectorify
    >>> from vectorify.endpoints import QueryObject
    >>> vectorify = Vectorify(api_key="my-key")
    >>> result = vectorify.query(QueryObject(text="unpaid invoices"))

Low-level Client:
    >>> from vectorify import Client
    >>> client = Client(api_key="my-key")
    >>> response = client.get("upserts")  # None if rejected (4xx)

Global Configuration:
    >>> from vectorify import VECTORIFY
    >>>
    >>> # Pre-loaded with defaults + env vars
    >>> timeout = VECTORIFY.config.client.request_timeout
    >>>
    >>> # Custom configuration
    >>> VECTORIFY.configure(
    ...     client={"api_key": "my-key", "request_timeout": 60, "max_attempts": 5},
    ...     rate_limit={"redis_url": "redis://localhost:6379/0"},
    ... )

Main Classes:
    - Vectorify: Facade exposing upsert() and query().
    - Client: Authenticated HTTP client with retries and quota coordination.

Configuration:
    - VECTORIFY: Global SDK singleton for configuration.
    - VectorifyConfig: Root configuration dataclass.
    - ClientConfig: Client configuration.
    - RateLimitConfig: Rate-limit coordination configuration.
    - ConfigEnvVarError: Exception raised when env var parsing fails.
    - ConfigValidationError: Exception raised when config validation fails.

Rate Limit Coordination:
    - RateLimitTracker: Preventive delays and 429 cooldowns from server quota headers.
    - RateLimitState: The shared quota snapshot.
    - RateLimitStore: Abstract base class for state stores.
    - InMemoryRateLimitStore: Process-local store.
    - RedisRateLimitStore: Redis-backed store shared between processes.

HTTP Client:
    - HttpClient: Abstract base class for HTTP transports.
    - RequestsHttpClient: Transport backed by requests.Session. Default.

Retry:
    - RetryCoordinator: Runs a logical call as bounded physical attempts.
    - AttemptOutcome: Classification of one attempt.
    - RetriesExhaustedError: Base exception when all attempts are used up.
    - RateLimitExceededError: All attempts were rate limited (HTTP 429).
    - ServerErrorExhaustedError: All attempts failed with HTTP 5xx.
    - CallCancelledError: The caller cancelled the call.
"""

import logging
from importlib.metadata import version as _get_version

__version__ = _get_version("vectorify")

logging.getLogger("vectorify").addHandler(logging.NullHandler())

from vectorify._client import Client  # noqa: E402
from vectorify._config import (  # noqa: E402
    VECTORIFY,
    ClientConfig,
    ConfigEnvVarError,
    ConfigValidationError,
    RateLimitConfig,
    VectorifyConfig,
)
from vectorify._http import HttpClient, RequestsHttpClient  # noqa: E402
from vectorify._rate_limit import RateLimitTracker  # noqa: E402
from vectorify._retry import (  # noqa: E402
    AttemptOutcome,
    RateLimitExceededError,
    RetriesExhaustedError,
    RetryCoordinator,
    ServerErrorExhaustedError,
)
from vectorify._store import (  # noqa: E402
    InMemoryRateLimitStore,
    RateLimitState,
    RateLimitStore,
    RedisRateLimitStore,
)
from vectorify._utils import CallCancelledError  # noqa: E402
from vectorify._vectorify import Vectorify  # noqa: E402

__all__ = [
    "__version__",
    # Main classes
    "Vectorify",
    "Client",
    # Configuration
    "VECTORIFY",
    "VectorifyConfig",
    "ClientConfig",
    "RateLimitConfig",
    "ConfigEnvVarError",
    "ConfigValidationError",
    # Rate limit coordination
    "RateLimitTracker",
    "RateLimitState",
    "RateLimitStore",
    "InMemoryRateLimitStore",
    "RedisRateLimitStore",
    # HTTP Client
    "HttpClient",
    "RequestsHttpClient",
    # Retry
    "RetryCoordinator",
    "AttemptOutcome",
    "RetriesExhaustedError",
    "RateLimitExceededError",
    "ServerErrorExhaustedError",
    "CallCancelledError",
]
