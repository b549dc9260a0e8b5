"""Tests specific to the Parquet/JSON file store."""
import tempfile
from pathlib import Path

import pytest

from tests.conftest import make_record


def test_file_store_creates_directory():
    from ipo_radar.core.record_store import FileRecordStore

    with tempfile.TemporaryDirectory() as tmpdir:
        base = Path(tmpdir) / "nested" / "data"
        FileRecordStore(base_path=base)

        assert base.exists()


def test_file_store_writes_parquet_with_key_columns():
    import pyarrow.parquet as pq
    from ipo_radar.core.record_store import FileRecordStore

    with tempfile.TemporaryDirectory() as tmpdir:
        store = FileRecordStore(base_path=tmpdir)
        store.upsert(make_record(company_name="  Sanima  Bank "))

        table = pq.read_table(Path(tmpdir) / "ipos.parquet")
        row = table.to_pylist()[0]

        assert row["company_key"] == "sanima bank"
        assert row["share_type_key"] == "general public"
        assert row["status"] == "OPEN"
        assert not (Path(tmpdir) / "ipos.parquet.tmp").exists()


def test_file_store_persists_across_instances():
    from ipo_radar.core.record_store import FileRecordStore

    with tempfile.TemporaryDirectory() as tmpdir:
        FileRecordStore(base_path=tmpdir).upsert(make_record())
        FileRecordStore(base_path=tmpdir).insert_subscriber("a@example.com")

        reopened = FileRecordStore(base_path=tmpdir)

        assert len(reopened.list_all()) == 1
        assert reopened.list_subscribers()[0].email == "a@example.com"


def test_file_store_corrupt_parquet_raises_store_error():
    from ipo_radar.core.record_store import FileRecordStore, StoreError

    with tempfile.TemporaryDirectory() as tmpdir:
        (Path(tmpdir) / "ipos.parquet").write_bytes(b"not parquet")
        store = FileRecordStore(base_path=tmpdir)

        with pytest.raises(StoreError):
            store.list_all()


def test_file_store_corrupt_subscribers_raises_store_error():
    from ipo_radar.core.record_store import FileRecordStore, StoreError

    with tempfile.TemporaryDirectory() as tmpdir:
        (Path(tmpdir) / "subscribers.json").write_text("{broken")
        store = FileRecordStore(base_path=tmpdir)

        with pytest.raises(StoreError):
            store.list_subscribers()
