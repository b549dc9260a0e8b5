"""Tests specific to the DuckDB store."""
import tempfile
from pathlib import Path

import pytest

from tests.conftest import TickingClock, make_record


def test_duckdb_store_persists_to_file():
    from ipo_radar.core.record_store import DuckDBRecordStore

    with tempfile.TemporaryDirectory() as tmpdir:
        path = Path(tmpdir) / "radar.duckdb"
        store = DuckDBRecordStore(path)
        store.upsert(make_record())
        store.insert_subscriber("a@example.com")
        store.close()

        reopened = DuckDBRecordStore(path)
        assert len(reopened.list_all()) == 1
        assert reopened.list_subscribers()[0].email == "a@example.com"
        reopened.close()


def test_duckdb_store_same_timestamp_orders_by_insertion():
    from datetime import datetime
    from ipo_radar.core.record_store import DuckDBRecordStore

    frozen = datetime(2026, 1, 1, 9, 0, 0)
    store = DuckDBRecordStore(clock=lambda: frozen)
    store.upsert(make_record(company_name="First"))
    store.upsert(make_record(company_name="Second"))

    assert [r.company_name for r in store.list_all()] == ["Second", "First"]
    store.close()


def test_duckdb_upsert_keeps_created_at():
    from ipo_radar.core.record_store import DuckDBRecordStore

    store = DuckDBRecordStore(clock=TickingClock())
    store.upsert(make_record())
    created = store.list_all()[0].created_at

    store.upsert(make_record(price=150.0))
    stored = store.list_all()[0]

    assert stored.created_at == created
    assert stored.updated_at > created
    store.close()


def test_duckdb_closed_connection_raises_store_error():
    from ipo_radar.core.record_store import DuckDBRecordStore, StoreError

    store = DuckDBRecordStore()
    store.close()

    with pytest.raises(StoreError):
        store.list_all()
