"""
Unit tests for the record store clients.

The Supabase client is replaced with a MagicMock, so these tests never
touch the network.
"""

from unittest.mock import MagicMock

import pytest

from core.exceptions import ConfigurationError
from core.record_store import (
    InMemoryRecordStore,
    StoreResult,
    SupabaseRecordStore,
    create_record_store,
)


PAYLOAD = {"full_name": "Jane Doe", "phone_number": "5551234567"}


class TestInMemoryRecordStore:

    def test_insert_returns_row(self, store):
        result = store.insert("repair_waivers", PAYLOAD)

        assert result.ok
        assert result.error is None
        assert result.data[0]["full_name"] == "Jane Doe"
        assert "id" in result.data[0]
        assert "created_at" in result.data[0]

    def test_collections_are_separate(self, store):
        store.insert("repair_waivers", PAYLOAD)
        store.insert("selling_waivers", PAYLOAD)
        store.insert("selling_waivers", PAYLOAD)

        assert store.count("repair_waivers") == 1
        assert store.count("selling_waivers") == 2
        assert store.count("purchase_waivers") == 0

    def test_payload_is_copied(self, store):
        payload = dict(PAYLOAD)
        store.insert("repair_waivers", payload)
        payload["full_name"] = "Changed"

        assert store.records("repair_waivers")[0]["full_name"] == "Jane Doe"

    def test_fail_next_fails_once(self, store):
        store.fail_next("table missing")

        failed = store.insert("repair_waivers", PAYLOAD)
        assert not failed.ok
        assert failed.error == "table missing"
        assert failed.data == []
        assert store.count("repair_waivers") == 0

        assert store.insert("repair_waivers", PAYLOAD).ok


class TestSupabaseRecordStore:

    @pytest.fixture
    def client(self):
        client = MagicMock()
        client.table.return_value.insert.return_value.execute.return_value = MagicMock(
            data=[{"id": 7, **PAYLOAD}]
        )
        return client

    def test_insert(self, client):
        store = SupabaseRecordStore("https://example.supabase.co", "key", client=client)

        result = store.insert("repair_waivers", PAYLOAD)

        assert result.ok
        assert result.data == [{"id": 7, **PAYLOAD}]
        client.table.assert_called_once_with("repair_waivers")
        client.table.return_value.insert.assert_called_once_with(PAYLOAD)

    def test_client_error_becomes_failure(self, client):
        client.table.return_value.insert.return_value.execute.side_effect = RuntimeError(
            "permission denied for table repair_waivers"
        )
        store = SupabaseRecordStore("https://example.supabase.co", "key", client=client)

        result = store.insert("repair_waivers", PAYLOAD)

        assert not result.ok
        assert "permission denied" in result.error

    def test_empty_response_data(self, client):
        client.table.return_value.insert.return_value.execute.return_value = MagicMock(data=None)
        store = SupabaseRecordStore("https://example.supabase.co", "key", client=client)

        result = store.insert("repair_waivers", PAYLOAD)
        assert result.ok
        assert result.data == []

    def test_missing_url(self):
        with pytest.raises(ConfigurationError) as exc_info:
            SupabaseRecordStore("", "key")
        assert exc_info.value.setting == "SUPABASE_URL"

    def test_missing_key(self):
        with pytest.raises(ConfigurationError) as exc_info:
            SupabaseRecordStore("https://example.supabase.co", "")
        assert exc_info.value.setting == "SUPABASE_KEY"


class TestCreateRecordStore:

    def test_memory_backend(self):
        assert isinstance(create_record_store({"RECORD_STORE_BACKEND": "memory"}), InMemoryRecordStore)

    def test_default_is_memory(self):
        assert isinstance(create_record_store({}), InMemoryRecordStore)

    def test_supabase_without_credentials_fails_fast(self):
        with pytest.raises(ConfigurationError):
            create_record_store({"RECORD_STORE_BACKEND": "supabase"})

    def test_unknown_backend(self):
        with pytest.raises(ConfigurationError) as exc_info:
            create_record_store({"RECORD_STORE_BACKEND": "firebase"})
        assert exc_info.value.setting == "RECORD_STORE_BACKEND"


class TestStoreResult:

    def test_success_and_failure(self):
        assert StoreResult.success([{"id": 1}]).ok
        assert StoreResult.failure("boom").error == "boom"
