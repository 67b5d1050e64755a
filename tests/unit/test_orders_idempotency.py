from unittest.mock import MagicMock

import pytest

from storefront.errors import ProviderError
from storefront.orders.idempotency import InMemoryProcessedEventStore, SupabaseProcessedEventStore


class _UniqueViolation(Exception):
    code = "23505"


def test_in_memory_claim_is_check_and_set():
    store = InMemoryProcessedEventStore()
    assert store.claim("evt_1") is True
    assert store.claim("evt_1") is False
    store.release("evt_1")
    assert store.claim("evt_1") is True


def test_supabase_claim_inserts_event_key():
    client = MagicMock()
    store = SupabaseProcessedEventStore(client)
    assert store.claim("evt_1") is True
    client.table.assert_called_with("processed_events")
    row = client.table.return_value.insert.call_args[0][0]
    assert row["event_key"] == "evt_1"


def test_supabase_claim_duplicate_returns_false():
    client = MagicMock()
    client.table.return_value.insert.return_value.execute.side_effect = _UniqueViolation("duplicate key")
    assert SupabaseProcessedEventStore(client).claim("evt_1") is False


def test_supabase_claim_other_errors_raise():
    client = MagicMock()
    client.table.return_value.insert.return_value.execute.side_effect = RuntimeError("connection reset")
    with pytest.raises(ProviderError):
        SupabaseProcessedEventStore(client).claim("evt_1")


def test_supabase_release_deletes_row():
    client = MagicMock()
    SupabaseProcessedEventStore(client).release("evt_1")
    client.table.return_value.delete.return_value.eq.assert_called_with("event_key", "evt_1")
