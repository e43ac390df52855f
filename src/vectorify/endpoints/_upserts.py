"""The `upserts` resource: create and inspect upsert batches."""

from __future__ import annotations

from typing import Any

from vectorify.endpoints._endpoint import Endpoint
from vectorify.endpoints._models import UpsertObject


class Upserts(Endpoint):
    """
    Operations on `/upserts`.

    Example:
        >>> upserts = Upserts(client)
        >>> upserts.create(UpsertObject(collection=CollectionObject("invoices"), items=items))
        True
        >>> upserts.list()
        [{'id': '01J...', 'status': 'done'}]
    """

    path = "upserts"

    def create(self, upsert: UpsertObject) -> bool:
        """
        Send a batch of items for vectorization.

        Returns:
            True if the API accepted the batch (HTTP 201), False otherwise.
        """
        response = self.client.post(self.path, json=upsert.to_payload())
        return response is not None and response.status_code == 201

    def list(self) -> list[dict[str, Any]]:
        """
        List the upsert batches known to the API.

        Returns:
            The `data` field of the response, or an empty list if the request failed.
        """
        response = self.client.get(self.path)
        if response is None or response.status_code != 200:
            return []

        body = self._json_body(response)
        if not isinstance(body, dict):
            return []
        return body.get("data") or []

    def fetch(self, upsert_id: str) -> dict[str, Any] | None:
        """
        Fetch one upsert batch by id.

        Returns:
            The `data` field of the response, or None if the batch was not found.
        """
        assert upsert_id, "Upsert ID cannot be empty."

        response = self.client.get(f"{self.path}/{upsert_id}")
        if response is None or response.status_code != 200:
            return None

        body = self._json_body(response)
        if not isinstance(body, dict):
            return None
        return body.get("data") or None
