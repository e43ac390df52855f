"""
HTTP transport abstraction for the Vectorify SDK.

This module provides the low-level HTTP client interface used by the Client to
send one physical request. It knows nothing about retries or rate limits: it
sends the request and returns whatever response the server produced, or raises
the transport's exception when no response was received.

Available implementations:
    - RequestsHttpClient: Sends requests through a `requests.Session`. Default.

Example:
    >>> from vectorify._http import RequestsHttpClient
    >>> http = RequestsHttpClient()
    >>> response = http.request("GET", "https://api.vectorify.ai/v1/upserts", headers={"Api-Key": "..."})
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, override

import requests

logger = logging.getLogger(__name__)


# =============================================================================
# Abstract Base Class
# =============================================================================


class HttpClient(ABC):
    """
    Abstract base class for HTTP transports.

    Implementations must return the server response for *any* status code
    (no `raise_for_status()`), and raise `requests.RequestException` subclasses
    when no response was received, so the retry logic can classify both cases.

    Example:
        >>> class MyHttpClient(HttpClient):
        ...     def request(self, method, url, json=None, headers=None, timeout=30):
        ...         return requests.request(method, url, json=json, headers=headers, timeout=timeout)
    """

    @abstractmethod
    def request(
        self,
        method: str,
        url: str,
        json: Any | None = None,
        headers: dict[str, str] | None = None,
        timeout: int = 30,
        params: dict[str, Any] | None = None,
    ) -> requests.Response:
        """
        Send one HTTP request.

        Args:
            method: HTTP method (GET, POST, PUT, PATCH, DELETE).
            url: The full URL to request.
            json: JSON-serializable body, if any.
            headers: Headers to send.
            timeout: Request timeout in seconds.
            params: Query string parameters.

        Returns:
            The HTTP response, whatever its status code.

        Raises:
            requests.ConnectionError: If the connection could not be established.
            requests.Timeout: If the server did not answer in time.
        """
        pass


# =============================================================================
# requests Implementation
# =============================================================================


class RequestsHttpClient(HttpClient):
    """
    HTTP transport backed by a `requests.Session`.

    The session provides connection pooling. `requests` does not guarantee that a
    Session is thread-safe; pass a session per thread (or one per Client) when
    sharing a Client across many threads matters.

    Args:
        session: Optional pre-configured session (proxies, adapters, certs).
            If None, a new session is created.
    """

    def __init__(self, session: requests.Session | None = None):
        self._session = session or requests.Session()

    @override
    def request(
        self,
        method: str,
        url: str,
        json: Any | None = None,
        headers: dict[str, str] | None = None,
        timeout: int = 30,
        params: dict[str, Any] | None = None,
    ) -> requests.Response:
        assert method, "HTTP method cannot be empty."
        assert url, "URL cannot be empty."
        assert timeout is not None, "Timeout cannot be None."
        assert timeout > 0, "Timeout must be greater than 0."

        logger.debug(f"{method.upper()} {url}")
        return self._session.request(
            method.upper(),
            url,
            json=json,
            headers=headers,
            params=params,
            timeout=timeout,
        )

    def close(self) -> None:
        """Release pooled connections."""
        self._session.close()
