"""
Tests for the document store adapters.
"""

from unittest.mock import MagicMock

import pytest

from alt_text.repositories import (
    AnyOf,
    Equals,
    Exists,
    InMemoryDocumentStore,
    create_document_store,
    missing_field,
)
from alt_text.repositories.document_store import matches
from alt_text.repositories.supabase_store import SupabaseDocumentStore, to_postgrest_filter
from alt_text.utils.exceptions import DocumentStoreError


class TestPredicates:
    """Tests for predicate evaluation."""

    @pytest.mark.parametrize(
        "record,expected",
        [
            ({"id": 1, "alt": ""}, True),
            ({"id": 1, "alt": None}, True),
            ({"id": 1}, True),
            ({"id": 1, "alt": "A cat"}, False),
        ],
    )
    def test_missing_field(self, record, expected):
        assert matches(record, missing_field("alt")) is expected

    def test_exists(self):
        assert matches({"alt": None}, Exists("alt"))
        assert not matches({}, Exists("alt"))


class TestInMemoryDocumentStore:
    """Tests for InMemoryDocumentStore."""

    def test_find_with_filter_and_select(self, document_store):
        records = document_store.find("media", missing_field("alt"), select=["filename"])

        assert sorted(r["id"] for r in records) == ["1", "2", "3", "5"]
        assert all(set(r) == {"id", "filename"} for r in records)

    def test_find_respects_limit(self, document_store):
        assert len(document_store.find("media", limit=2)) == 2

    def test_unknown_collection_is_empty(self, document_store):
        assert document_store.find("banners") == []

    def test_update_then_find(self, document_store):
        document_store.update("media", "1", {"alt": "Sunset over a beach"})

        remaining = document_store.find("media", missing_field("alt"))

        assert "1" not in [r["id"] for r in remaining]
        assert document_store.get("media", "1")["alt"] == "Sunset over a beach"

    def test_update_unknown_record(self, document_store):
        with pytest.raises(DocumentStoreError, match="not found"):
            document_store.update("media", "999", {"alt": "x"})

    def test_returned_records_are_copies(self, document_store):
        record = document_store.find("media")[0]
        record["alt"] = "mutated"

        assert document_store.get("media", record["id"])["alt"] != "mutated"

    def test_add_requires_id(self):
        with pytest.raises(DocumentStoreError):
            InMemoryDocumentStore().add("media", {"filename": "a.png"})


class TestSupabaseDocumentStore:
    """Tests for SupabaseDocumentStore against a mocked client."""

    def test_postgrest_filter(self):
        assert to_postgrest_filter(missing_field("alt")) == 'or(alt.eq."",alt.is.null,alt.is.null)'
        assert to_postgrest_filter(Equals("alt", "x")) == "alt.eq.x"
        assert to_postgrest_filter(Exists("alt")) == "alt.not.is.null"
        assert to_postgrest_filter(AnyOf((Equals("a", 1),))) == "or(a.eq.1)"

    def test_find_builds_query(self):
        client = MagicMock()
        query = client.table.return_value.select.return_value
        query.or_.return_value.limit.return_value.execute.return_value = MagicMock(
            data=[{"id": "1", "filename": "a.png"}]
        )
        store = SupabaseDocumentStore(client)

        records = store.find("media", missing_field("alt"), limit=500, select=["filename", "alt"])

        assert records == [{"id": "1", "filename": "a.png"}]
        client.table.assert_called_with("media")
        client.table.return_value.select.assert_called_with("alt,filename,id")
        query.or_.assert_called_with('alt.eq."",alt.is.null,alt.is.null')
        query.or_.return_value.limit.assert_called_with(500)

    def test_update_not_found(self):
        client = MagicMock()
        client.table.return_value.update.return_value.eq.return_value.execute.return_value = MagicMock(data=[])
        store = SupabaseDocumentStore(client)

        with pytest.raises(DocumentStoreError, match="not found"):
            store.update("media", "42", {"alt": "x"})

    def test_query_failure_is_wrapped(self):
        client = MagicMock()
        client.table.side_effect = RuntimeError("connection reset")
        store = SupabaseDocumentStore(client)

        with pytest.raises(DocumentStoreError, match="connection reset"):
            store.find("media")


def test_create_document_store_defaults_to_memory(app_settings):
    assert isinstance(create_document_store(app_settings), InMemoryDocumentStore)
