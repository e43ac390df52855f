"""
High-level entry point for the Vectorify API.

Example:
    >>> from vectorify import Vectorify
    >>> from vectorify.endpoints import CollectionObject, ItemObject, QueryObject, UpsertObject
    >>> vectorify = Vectorify(api_key="my-key")
    >>> vectorify.upsert(UpsertObject(
    ...     collection=CollectionObject("invoices"),
    ...     items=[ItemObject(id="inv-1", data={"title": "March invoice"})],
    ... ))
    True
    >>> vectorify.query(QueryObject(text="march invoices"))
    {'items': [...]}
"""

import logging
from typing import Any

from vectorify._client import _DEFAULT_STORE, Client
from vectorify._store import RateLimitStore
from vectorify.endpoints import Query, QueryObject, Upserts, UpsertObject


class Vectorify:
    """
    Vectorify SDK facade.

    Owns one Client (and so one rate-limit coordination pipeline) shared by all endpoints.

    Args:
        api_key: Vectorify API key. If None, uses VECTORIFY.config.client.api_key.
        timeout: Request timeout in seconds. If None, uses config.
        store: Store for sharing quota state between processes. Same semantics
            as in Client: omitted picks one from config, None disables coordination.
        logger: Optional logger injected into the Client.

    Raises:
        ConfigValidationError: If the API key is empty or the timeout is not positive.
    """

    def __init__(
        self,
        api_key: str | None = None,
        timeout: int | None = None,
        store: RateLimitStore | None = _DEFAULT_STORE,
        logger: logging.Logger | None = None,
    ):
        self.client = Client(api_key=api_key, timeout=timeout, store=store, logger=logger)
        self.upserts = Upserts(self.client)
        self._query = Query(self.client)

    def upsert(self, upsert: UpsertObject) -> bool:
        """Send a batch of items. Returns True if the API accepted it."""
        return self.upserts.create(upsert)

    def query(self, query: QueryObject) -> dict[str, Any] | None:
        """Run a query. Returns the response body, or None if it failed."""
        return self._query.send(query)
