"""
Data objects for the Vectorify API.

These immutable objects describe what is sent to the API. Each one exposes
`to_dict()` (all fields, for inspection and logging) and `to_payload()`
(the JSON body the API expects).
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class CollectionObject:
    """
    A Vectorify collection, identified by its slug.

    Attributes:
        slug: Collection slug (e.g. "invoices").
        metadata: Collection-level metadata.

    Example:
        >>> CollectionObject("invoices", {"team": "billing"}).to_payload()
        {'slug': 'invoices', 'metadata': {'team': 'billing'}}
    """
    slug: str
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        assert self.slug, "Collection slug cannot be empty."

    def to_dict(self) -> dict[str, Any]:
        return {
            "slug": self.slug,
            "metadata": self.metadata,
        }

    def to_payload(self) -> dict[str, Any]:
        return {
            "slug": self.slug,
            "metadata": self.metadata,
        }


@dataclass(frozen=True)
class ItemObject:
    """
    A single item to be vectorized.

    Attributes:
        id: Item identifier, unique within its collection.
        data: Content fields to be embedded.
        metadata: Item metadata, returned with query results.
        tenant: Optional tenant id for multi-tenant collections.
        url: Optional link back to the item in the source system.
    """
    id: str
    data: dict[str, Any]
    metadata: dict[str, Any] = field(default_factory=dict)
    tenant: int | None = None
    url: str | None = None

    def __post_init__(self) -> None:
        assert self.id, "Item ID cannot be empty."

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "data": self.data,
            "metadata": self.metadata,
            "tenant": self.tenant,
            "url": self.url,
        }

    def to_payload(self) -> dict[str, Any]:
        return self.to_dict()


@dataclass(frozen=True)
class QueryObject:
    """
    A natural-language query against one or more collections.

    Optional fields left as None are omitted from the payload, so the API
    applies its own defaults.

    Attributes:
        text: The query text.
        collections: Collection slugs to search. None means all collections.
        tenant: Optional tenant id to scope the search.
        identifier: Optional caller identification (e.g. {"user_id": 42}).

    Example:
        >>> QueryObject(text="unpaid invoices", tenant=7).to_payload()
        {'text': 'unpaid invoices', 'tenant': 7}
    """
    text: str
    collections: list[str] | None = None
    tenant: int | None = None
    identifier: dict[str, Any] | None = None

    def __post_init__(self) -> None:
        assert self.text, "Query text cannot be empty."

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "collections": self.collections,
            "tenant": self.tenant,
            "identifier": self.identifier,
        }

    def to_payload(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"text": self.text}

        if self.collections is not None:
            payload["collections"] = self.collections
        if self.tenant is not None:
            payload["tenant"] = self.tenant
        if self.identifier is not None:
            payload["identifier"] = self.identifier

        return payload


@dataclass(frozen=True)
class UpsertObject:
    """
    A batch of items to insert or update in a collection.

    Attributes:
        collection: Target collection.
        items: Items to upsert.

    Example:
        >>> upsert = UpsertObject(
        ...     collection=CollectionObject("invoices"),
        ...     items=[ItemObject(id="inv-1", data={"title": "March invoice"})],
        ... )
    """
    collection: CollectionObject
    items: list[ItemObject] = field(default_factory=list)

    def __post_init__(self) -> None:
        assert self.collection is not None, "Collection cannot be None."

    def to_dict(self) -> dict[str, Any]:
        return {
            "collection": self.collection,
            "items": self.items,
        }

    def to_payload(self) -> dict[str, Any]:
        return {
            "collection": self.collection.to_payload(),
            "items": [item.to_payload() for item in self.items],
        }
