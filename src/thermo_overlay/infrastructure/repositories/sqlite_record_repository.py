import json
import logging
import sqlite3
import time
from contextlib import contextmanager
from typing import Iterator, List, Optional

from ...errors import DatabaseError, RecordNotFoundError
from ...models import ExperimentRecord, ReadingsRecord
from ..db.pool import ConnectionPool

_logger = logging.getLogger(__name__)


class SQLiteRecordRepository:
    """History of rendered experiments: readings plus both image payloads."""

    def __init__(self, pool: ConnectionPool):
        self._pool = pool
        self._init_table()

    @contextmanager
    def _connection(self, action: str) -> Iterator[sqlite3.Connection]:
        try:
            with self._pool.connection() as conn:
                yield conn
        except sqlite3.Error as exc:
            raise DatabaseError(f"Failed to {action}: {exc}") from exc

    def _init_table(self):
        with self._connection("create the records table") as conn:
            conn.execute("""
                CREATE TABLE IF NOT EXISTS records (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    timestamp INTEGER NOT NULL,
                    readings TEXT NOT NULL,
                    original_image BLOB NOT NULL,
                    processed_image BLOB NOT NULL
                )
            """)
            conn.execute("CREATE INDEX IF NOT EXISTS idx_records_timestamp ON records(timestamp)")

    def add(
        self,
        readings: ReadingsRecord,
        original_bytes: bytes,
        processed_bytes: bytes,
        timestamp: Optional[int] = None,
    ) -> int:
        """Store a record and return its auto-assigned id."""
        ts = int(time.time() * 1000) if timestamp is None else int(timestamp)
        with self._connection("store record") as conn:
            cursor = conn.execute(
                """
                INSERT INTO records (timestamp, readings, original_image, processed_image)
                VALUES (?, ?, ?, ?)
                """,
                (
                    ts,
                    json.dumps(readings.to_dict()),
                    sqlite3.Binary(original_bytes),
                    sqlite3.Binary(processed_bytes),
                ),
            )
            record_id = int(cursor.lastrowid)
        _logger.debug("Stored record %d (%d bytes processed)", record_id, len(processed_bytes))
        return record_id

    def get(self, record_id: int) -> ExperimentRecord:
        with self._connection(f"load record {record_id}") as conn:
            row = conn.execute("SELECT * FROM records WHERE id = ?", (record_id,)).fetchone()
        if row is None:
            raise RecordNotFoundError(f"No record with id {record_id}")
        return self._map_row_to_record(row)

    def list_all(self) -> List[ExperimentRecord]:
        """Return every record, newest first."""
        with self._connection("list records") as conn:
            rows = conn.execute("SELECT * FROM records ORDER BY timestamp DESC, id DESC").fetchall()
        return [self._map_row_to_record(row) for row in rows]

    def delete(self, record_id: int) -> None:
        with self._connection(f"delete record {record_id}") as conn:
            deleted = conn.execute("DELETE FROM records WHERE id = ?", (record_id,)).rowcount
        if deleted == 0:
            raise RecordNotFoundError(f"No record with id {record_id}")
        _logger.debug("Deleted record %d", record_id)

    def count(self) -> int:
        with self._connection("count records") as conn:
            return int(conn.execute("SELECT COUNT(*) FROM records").fetchone()[0])

    def _map_row_to_record(self, row) -> ExperimentRecord:
        return ExperimentRecord(
            id=int(row["id"]),
            timestamp=int(row["timestamp"]),
            readings=ReadingsRecord.from_mapping(json.loads(row["readings"])),
            original_bytes=bytes(row["original_image"]),
            processed_bytes=bytes(row["processed_image"]),
        )
