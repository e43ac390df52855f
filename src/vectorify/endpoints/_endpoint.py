"""Base class shared by the Vectorify API endpoints."""

import logging
from abc import ABC
from typing import Any

import requests

from vectorify._client import Client

logger = logging.getLogger(__name__)


class Endpoint(ABC):
    """
    An API resource reached through a Client.

    Subclasses set `path` (relative to the client's base URL) and build their
    operations on top of `self.client`.
    """

    path: str = ""

    def __init__(self, client: Client):
        assert client is not None, "Client cannot be None."
        self.client = client

    @staticmethod
    def _json_body(response: requests.Response) -> Any:
        """Decode a JSON body, returning None when the body is empty or not JSON."""
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.warning(f"Endpoint | ⚠️ Response body is not valid JSON (HTTP {response.status_code}): {e}")
            return None
