"""The `query` resource: semantic search over collections."""

from typing import Any

from vectorify.endpoints._endpoint import Endpoint
from vectorify.endpoints._models import QueryObject


class Query(Endpoint):
    """Operations on `/query`."""

    path = "query"

    def send(self, query: QueryObject) -> dict[str, Any] | None:
        """
        Run a query.

        Returns:
            The decoded response body (empty dict if the body is empty),
            or None if the API did not answer with HTTP 201.
        """
        response = self.client.post(self.path, json=query.to_payload())
        if response is None or response.status_code != 201:
            return None

        body = self._json_body(response)
        return body if isinstance(body, dict) else {}
