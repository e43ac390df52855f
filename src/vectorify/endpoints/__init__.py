"""
Endpoints and data objects of the Vectorify API.

Example:
    >>> from vectorify import Client
    >>> from vectorify.endpoints import Query, QueryObject
    >>> query = Query(Client(api_key="my-key"))
    >>> result = query.send(QueryObject(text="unpaid invoices", collections=["invoices"]))
    >>> if result is None:
    ...     print("Query failed")
"""

from vectorify.endpoints._endpoint import Endpoint
from vectorify.endpoints._models import (
    CollectionObject,
    ItemObject,
    QueryObject,
    UpsertObject,
)
from vectorify.endpoints._query import Query
from vectorify.endpoints._upserts import Upserts

__all__ = [
    # Endpoints
    "Endpoint",
    "Query",
    "Upserts",
    # Data objects
    "CollectionObject",
    "ItemObject",
    "QueryObject",
    "UpsertObject",
]
