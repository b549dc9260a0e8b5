"""Record store protocol and implementations."""
import json
import logging
import re
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Callable, Protocol, runtime_checkable

import duckdb
import pyarrow as pa
import pyarrow.parquet as pq

from ipo_radar.core.config import DataStoreConfig
from ipo_radar.models import IPORecord, RecordKey, Subscriber

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when the store cannot be read or written."""

    pass


class DuplicateError(StoreError):
    """Raised when a subscriber email is already registered."""

    pass


_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def normalize_email(email: str) -> str:
    """Strip and lowercase an email address.

    Raises:
        ValueError: If the address is not shaped like local@domain.tld
    """
    cleaned = (email or "").strip().lower()
    if not _EMAIL_RE.match(cleaned):
        raise ValueError(f"Invalid email address: {email!r}")
    return cleaned


@runtime_checkable
class RecordStore(Protocol):
    """Protocol for IPO and subscriber persistence backends."""

    def list_all(self) -> list[IPORecord]:
        """Return every stored record, newest first by creation time."""
        ...

    def get(self, key: RecordKey) -> IPORecord | None:
        """Return the record stored under key, or None."""
        ...

    def exists(self, key: RecordKey) -> bool:
        """Check whether a record with this natural key is stored."""
        ...

    def upsert(self, record: IPORecord) -> None:
        """Insert the record, or overwrite the stored one with the same key."""
        ...

    def insert_subscriber(self, email: str) -> Subscriber:
        """Register an email. Raises DuplicateError if already present."""
        ...

    def list_subscribers(self) -> list[Subscriber]:
        """Return all subscribers, oldest first."""
        ...


class InMemoryRecordStore:
    """Dict-backed RecordStore for tests and dry runs."""

    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        self._clock = clock
        # Insertion order doubles as creation order
        self._records: dict[RecordKey, IPORecord] = {}
        self._subscribers: dict[str, Subscriber] = {}

    def list_all(self) -> list[IPORecord]:
        return [replace(r) for r in reversed(self._records.values())]

    def get(self, key: RecordKey) -> IPORecord | None:
        record = self._records.get(key)
        return replace(record) if record else None

    def exists(self, key: RecordKey) -> bool:
        return key in self._records

    def upsert(self, record: IPORecord) -> None:
        now = self._clock()
        existing = self._records.get(record.key)
        created_at = existing.created_at if existing else now
        self._records[record.key] = record.stamped(created_at, now)

    def insert_subscriber(self, email: str) -> Subscriber:
        address = normalize_email(email)
        if address in self._subscribers:
            raise DuplicateError(f"Already subscribed: {address}")
        subscriber = Subscriber(email=address, created_at=self._clock())
        self._subscribers[address] = subscriber
        return subscriber

    def list_subscribers(self) -> list[Subscriber]:
        return list(self._subscribers.values())


# Parquet schema for the ipos table; key columns hold the canonical key
IPO_SCHEMA = pa.schema([
    ("company_key", pa.string()),
    ("share_type_key", pa.string()),
    ("company_name", pa.string()),
    ("share_type", pa.string()),
    ("sector", pa.string()),
    ("units", pa.int64()),
    ("price", pa.float64()),
    ("opening_date", pa.string()),
    ("closing_date", pa.string()),
    ("status", pa.string()),
    ("description", pa.string()),
    ("min_units", pa.int64()),
    ("max_units", pa.int64()),
    ("rating", pa.string()),
    ("project_description", pa.string()),
    ("risks", pa.string()),
    ("source_url", pa.string()),
    ("created_at", pa.timestamp("us")),
    ("updated_at", pa.timestamp("us")),
])


def _keyed_row(record: IPORecord) -> dict:
    row = record.to_row()
    row["company_key"] = record.key.company
    row["share_type_key"] = record.key.share_type
    return row


class FileRecordStore:
    """File-based implementation of RecordStore using Parquet and JSON.

    Layout under base_path:
        ipos.parquet       one row per (company, share type), creation order
        subscribers.json   list of {email, created_at}
    """

    def __init__(self, base_path: str | Path, clock: Callable[[], datetime] = datetime.now):
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)
        self.ipos_file = self.base_path / "ipos.parquet"
        self.subscribers_file = self.base_path / "subscribers.json"
        self._clock = clock

    # =========================================================================
    # IPO Storage (Parquet)
    # =========================================================================

    def list_all(self) -> list[IPORecord]:
        rows = self._read_rows()
        return [IPORecord.from_row(row) for row in reversed(rows)]

    def get(self, key: RecordKey) -> IPORecord | None:
        for row in self._read_rows():
            if (row["company_key"], row["share_type_key"]) == (key.company, key.share_type):
                return IPORecord.from_row(row)
        return None

    def exists(self, key: RecordKey) -> bool:
        return self.get(key) is not None

    def upsert(self, record: IPORecord) -> None:
        rows = self._read_rows()
        key = record.key
        now = self._clock()

        for i, row in enumerate(rows):
            if (row["company_key"], row["share_type_key"]) == (key.company, key.share_type):
                rows[i] = _keyed_row(record.stamped(row["created_at"], now))
                break
        else:
            rows.append(_keyed_row(record.stamped(now, now)))

        self._write_rows(rows)
        logger.debug(f"Upserted {key} into {self.ipos_file}")

    def _read_rows(self) -> list[dict]:
        """Read all rows from the Parquet file."""
        if not self.ipos_file.exists():
            return []
        try:
            return pq.read_table(self.ipos_file).to_pylist()
        except (OSError, pa.ArrowException) as e:
            raise StoreError(f"Failed to read {self.ipos_file}: {e}") from e

    def _write_rows(self, rows: list[dict]) -> None:
        """Write rows to the Parquet file, replacing it atomically."""
        tmp_path = self.ipos_file.with_suffix(".parquet.tmp")
        try:
            table = pa.Table.from_pylist(rows, schema=IPO_SCHEMA)
            pq.write_table(table, tmp_path)
            tmp_path.replace(self.ipos_file)
        except (OSError, pa.ArrowException) as e:
            raise StoreError(f"Failed to write {self.ipos_file}: {e}") from e

    # =========================================================================
    # Subscriber Storage (JSON)
    # =========================================================================

    def insert_subscriber(self, email: str) -> Subscriber:
        address = normalize_email(email)
        entries = self._read_subscribers()
        if any(entry["email"] == address for entry in entries):
            raise DuplicateError(f"Already subscribed: {address}")

        subscriber = Subscriber(email=address, created_at=self._clock())
        entries.append({"email": address, "created_at": subscriber.created_at.isoformat()})

        try:
            with open(self.subscribers_file, "w") as f:
                json.dump(entries, f, indent=2)
        except OSError as e:
            raise StoreError(f"Failed to write {self.subscribers_file}: {e}") from e

        logger.debug(f"Saved subscriber to {self.subscribers_file}")
        return subscriber

    def list_subscribers(self) -> list[Subscriber]:
        return [
            Subscriber(email=entry["email"], created_at=datetime.fromisoformat(entry["created_at"]))
            for entry in self._read_subscribers()
        ]

    def _read_subscribers(self) -> list[dict]:
        if not self.subscribers_file.exists():
            return []
        try:
            with open(self.subscribers_file) as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(f"Failed to read {self.subscribers_file}: {e}") from e


IPO_COLUMNS = list(IPO_SCHEMA.names)

CREATE_TABLES_SQL = [
    "CREATE SEQUENCE IF NOT EXISTS ipos_seq",
    """
    CREATE TABLE IF NOT EXISTS ipos (
        id BIGINT DEFAULT nextval('ipos_seq'),
        company_key VARCHAR NOT NULL,
        share_type_key VARCHAR NOT NULL,
        company_name VARCHAR NOT NULL,
        share_type VARCHAR NOT NULL,
        sector VARCHAR,
        units BIGINT,
        price DOUBLE,
        opening_date VARCHAR,
        closing_date VARCHAR,
        status VARCHAR NOT NULL,
        description VARCHAR,
        min_units BIGINT,
        max_units BIGINT,
        rating VARCHAR,
        project_description VARCHAR,
        risks VARCHAR,
        source_url VARCHAR,
        created_at TIMESTAMP NOT NULL,
        updated_at TIMESTAMP NOT NULL,
        PRIMARY KEY (company_key, share_type_key)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS subscribers (
        email VARCHAR PRIMARY KEY,
        created_at TIMESTAMP NOT NULL
    )
    """,
]

# Every column except the key and created_at is refreshed on conflict
_UPDATE_COLUMNS = [c for c in IPO_COLUMNS if c not in ("company_key", "share_type_key", "created_at")]

UPSERT_SQL = (
    f"INSERT INTO ipos ({', '.join(IPO_COLUMNS)}) "
    f"VALUES ({', '.join('?' for _ in IPO_COLUMNS)}) "
    "ON CONFLICT (company_key, share_type_key) DO UPDATE SET "
    + ", ".join(f"{c} = EXCLUDED.{c}" for c in _UPDATE_COLUMNS)
)


class DuckDBRecordStore:
    """Relational RecordStore backed by DuckDB.

    Tables mirror the hosted schema: `ipos` keyed by (company, share type)
    and `subscribers` with a unique email.
    """

    def __init__(self, database: str | Path = ":memory:", clock: Callable[[], datetime] = datetime.now):
        self.database = str(database)
        self._clock = clock
        try:
            self._conn = duckdb.connect(self.database)
            for statement in CREATE_TABLES_SQL:
                self._conn.execute(statement)
        except duckdb.Error as e:
            raise StoreError(f"Failed to open database {self.database}: {e}") from e

    def close(self) -> None:
        self._conn.close()

    def list_all(self) -> list[IPORecord]:
        sql = f"SELECT {', '.join(IPO_COLUMNS)} FROM ipos ORDER BY created_at DESC, id DESC"
        try:
            rows = self._conn.execute(sql).fetchall()
        except duckdb.Error as e:
            raise StoreError(f"Failed to list IPOs: {e}") from e
        return [IPORecord.from_row(dict(zip(IPO_COLUMNS, row))) for row in rows]

    def get(self, key: RecordKey) -> IPORecord | None:
        sql = f"SELECT {', '.join(IPO_COLUMNS)} FROM ipos WHERE company_key = ? AND share_type_key = ?"
        try:
            row = self._conn.execute(sql, [key.company, key.share_type]).fetchone()
        except duckdb.Error as e:
            raise StoreError(f"Failed to read {key}: {e}") from e
        return IPORecord.from_row(dict(zip(IPO_COLUMNS, row))) if row else None

    def exists(self, key: RecordKey) -> bool:
        sql = "SELECT 1 FROM ipos WHERE company_key = ? AND share_type_key = ?"
        try:
            return self._conn.execute(sql, [key.company, key.share_type]).fetchone() is not None
        except duckdb.Error as e:
            raise StoreError(f"Failed to check {key}: {e}") from e

    def upsert(self, record: IPORecord) -> None:
        now = self._clock()
        row = _keyed_row(record.stamped(now, now))
        try:
            self._conn.execute(UPSERT_SQL, [row[c] for c in IPO_COLUMNS])
        except duckdb.Error as e:
            raise StoreError(f"Failed to upsert {record.key}: {e}") from e

    def insert_subscriber(self, email: str) -> Subscriber:
        address = normalize_email(email)
        subscriber = Subscriber(email=address, created_at=self._clock())
        try:
            self._conn.execute(
                "INSERT INTO subscribers (email, created_at) VALUES (?, ?)",
                [subscriber.email, subscriber.created_at],
            )
        except duckdb.ConstraintException as e:
            raise DuplicateError(f"Already subscribed: {address}") from e
        except duckdb.Error as e:
            raise StoreError(f"Failed to insert subscriber: {e}") from e
        return subscriber

    def list_subscribers(self) -> list[Subscriber]:
        try:
            rows = self._conn.execute(
                "SELECT email, created_at FROM subscribers ORDER BY created_at"
            ).fetchall()
        except duckdb.Error as e:
            raise StoreError(f"Failed to list subscribers: {e}") from e
        return [Subscriber(email=email, created_at=created_at) for email, created_at in rows]


def create_record_store(config: DataStoreConfig) -> RecordStore:
    """Build the RecordStore selected by configuration."""
    if config.backend == "memory":
        return InMemoryRecordStore()
    if config.backend == "duckdb":
        base = Path(config.path)
        base.mkdir(parents=True, exist_ok=True)
        return DuckDBRecordStore(base / "ipo_radar.duckdb")
    return FileRecordStore(config.path)
