"""Tests for API endpoints and data objects."""

from unittest.mock import MagicMock

import pytest
import requests

from vectorify import Client
from vectorify.endpoints import (
    CollectionObject,
    ItemObject,
    Query,
    QueryObject,
    UpsertObject,
    Upserts,
)


def _json_response(status_code: int, body=None) -> MagicMock:
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code
    response.content = b"" if body is None else b"{...}"
    response.json.return_value = body
    return response


def _items() -> list[ItemObject]:
    return [
        ItemObject(id="inv-1", data={"title": "March invoice"}, metadata={"year": 2026}, tenant=7),
        ItemObject(id="inv-2", data={"title": "April invoice"}, url="https://app.example.com/inv/2"),
    ]


# =============================================================================
# Data Object Tests
# =============================================================================


class TestCollectionObject:

    def test_fields(self):
        collection = CollectionObject("test-slug", {"key": "value"})
        assert collection.slug == "test-slug"
        assert collection.metadata == {"key": "value"}

    def test_to_dict_and_payload(self):
        collection = CollectionObject("test-slug", {"key": "value"})
        expected = {"slug": "test-slug", "metadata": {"key": "value"}}
        assert collection.to_dict() == expected
        assert collection.to_payload() == expected

    def test_metadata_defaults_to_empty(self):
        assert CollectionObject("s").to_payload() == {"slug": "s", "metadata": {}}

    def test_empty_slug_rejected(self):
        with pytest.raises(AssertionError):
            CollectionObject("")

    def test_is_frozen(self):
        with pytest.raises(AttributeError):
            CollectionObject("s").slug = "other"  # type: ignore


class TestItemObject:

    def test_payload_includes_all_fields(self):
        item = ItemObject(id="inv-1", data={"title": "x"}, metadata={"a": 1}, tenant=3, url="https://u")
        assert item.to_payload() == {
            "id": "inv-1",
            "data": {"title": "x"},
            "metadata": {"a": 1},
            "tenant": 3,
            "url": "https://u",
        }

    def test_optional_fields_default_to_none(self):
        payload = ItemObject(id="inv-1", data={}).to_payload()
        assert payload["tenant"] is None
        assert payload["url"] is None
        assert payload["metadata"] == {}


class TestQueryObject:

    def test_payload_omits_unset_fields(self):
        assert QueryObject(text="unpaid invoices").to_payload() == {"text": "unpaid invoices"}

    def test_payload_includes_set_fields(self):
        query = QueryObject(text="q", collections=["invoices"], tenant=7, identifier={"user_id": 42})
        assert query.to_payload() == {
            "text": "q",
            "collections": ["invoices"],
            "tenant": 7,
            "identifier": {"user_id": 42},
        }

    def test_to_dict_keeps_unset_fields(self):
        assert QueryObject(text="q").to_dict() == {
            "text": "q",
            "collections": None,
            "tenant": None,
            "identifier": None,
        }

    def test_empty_collections_list_is_sent(self):
        assert QueryObject(text="q", collections=[]).to_payload() == {"text": "q", "collections": []}


class TestUpsertObject:

    def test_payload_nests_collection_and_items(self):
        upsert = UpsertObject(collection=CollectionObject("invoices"), items=_items())

        payload = upsert.to_payload()

        assert payload["collection"] == {"slug": "invoices", "metadata": {}}
        assert [i["id"] for i in payload["items"]] == ["inv-1", "inv-2"]
        assert payload["items"][0]["tenant"] == 7

    def test_to_dict_keeps_objects(self):
        collection = CollectionObject("invoices")
        upsert = UpsertObject(collection=collection, items=[])
        assert upsert.to_dict()["collection"] is collection


# =============================================================================
# Endpoint Tests
# =============================================================================


class TestUpserts:

    def setup_method(self):
        self.client = MagicMock(spec=Client)
        self.upserts = Upserts(self.client)

    def test_create_posts_payload(self):
        self.client.post.return_value = _json_response(201, {"id": "01J"})
        upsert = UpsertObject(collection=CollectionObject("invoices"), items=_items())

        assert self.upserts.create(upsert) is True

        self.client.post.assert_called_once_with("upserts", json=upsert.to_payload())

    @pytest.mark.parametrize("response", [None, _json_response(200, {}), _json_response(202, {})])
    def test_create_fails_without_201(self, response):
        self.client.post.return_value = response
        assert self.upserts.create(UpsertObject(collection=CollectionObject("c"))) is False

    def test_list_returns_data(self):
        self.client.get.return_value = _json_response(200, {"data": [{"id": "a"}, {"id": "b"}]})

        assert self.upserts.list() == [{"id": "a"}, {"id": "b"}]
        self.client.get.assert_called_once_with("upserts")

    @pytest.mark.parametrize("response", [
        None,
        _json_response(500, {"data": [1]}),
        _json_response(200, None),
        _json_response(200, {"data": None}),
        _json_response(200, ["not", "a", "dict"]),
    ])
    def test_list_returns_empty_list_on_failure(self, response):
        self.client.get.return_value = response
        assert self.upserts.list() == []

    def test_list_tolerates_invalid_json(self):
        response = _json_response(200, {})
        response.json.side_effect = ValueError("Expecting value")
        self.client.get.return_value = response
        assert self.upserts.list() == []

    def test_fetch_returns_data(self):
        self.client.get.return_value = _json_response(200, {"data": {"id": "01J", "status": "done"}})

        assert self.upserts.fetch("01J") == {"id": "01J", "status": "done"}
        self.client.get.assert_called_once_with("upserts/01J")

    def test_fetch_not_found(self):
        self.client.get.return_value = None
        assert self.upserts.fetch("missing") is None

    def test_fetch_empty_data(self):
        self.client.get.return_value = _json_response(200, {"data": {}})
        assert self.upserts.fetch("01J") is None

    def test_fetch_requires_id(self):
        with pytest.raises(AssertionError):
            self.upserts.fetch("")


class TestQuery:

    def setup_method(self):
        self.client = MagicMock(spec=Client)
        self.query = Query(self.client)

    def test_send_returns_body(self):
        self.client.post.return_value = _json_response(201, {"items": [{"id": "inv-1"}]})
        query = QueryObject(text="march", collections=["invoices"])

        assert self.query.send(query) == {"items": [{"id": "inv-1"}]}
        self.client.post.assert_called_once_with("query", json={"text": "march", "collections": ["invoices"]})

    def test_send_with_empty_body_returns_empty_dict(self):
        self.client.post.return_value = _json_response(201, None)
        assert self.query.send(QueryObject(text="q")) == {}

    @pytest.mark.parametrize("response", [None, _json_response(200, {"items": []})])
    def test_send_returns_none_without_201(self, response):
        self.client.post.return_value = response
        assert self.query.send(QueryObject(text="q")) is None

    def test_endpoint_requires_client(self):
        with pytest.raises(AssertionError):
            Query(None)  # type: ignore
