"""
SQLite Event Store - the durable, append-only ledger log

The event store plays the part of the execution environment's storage:
- Append-only semantics (events never modified or deleted)
- One transaction per append, so a call commits fully or not at all
- Optimistic locking via per-stream versions
- A global commit sequence that fixes the replay order across streams
- Idempotency via command_id
"""

import json
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator

from supply_ledger.kernel.errors import (
    CommandIdempotencyViolation,
    EventStoreError,
    StreamVersionConflict,
)
from supply_ledger.kernel.events import Event
from supply_ledger.kernel.logging import get_logger
from supply_ledger.kernel.metrics import (
    events_appended_total,
    events_loaded_total,
    stream_version_conflicts_total,
)
from supply_ledger.kernel.retry import retry_on_sqlite_lock

logger = get_logger(__name__)

_EVENT_COLUMNS = """
    sequence, event_id, stream_id, stream_type, version,
    command_id, event_type, occurred_at, actor_id, payload_json
"""


class SQLiteEventStore:
    """
    SQLite-based event store with append-only semantics

    WAL mode gives crash safety and lets readers proceed while a writer
    commits.

    Schema:
    - events table: append-only log, ``sequence`` is the commit order
    - Unique constraints: event_id, (stream_id, version)
    - Indices: stream_id, command_id
    """

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = Path(db_path)
        self._initialize_schema()

    def _initialize_schema(self) -> None:
        """Create tables and indices if they don't exist"""
        with self._connect() as conn:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA synchronous=NORMAL")

            conn.execute("""
                CREATE TABLE IF NOT EXISTS events (
                    sequence INTEGER PRIMARY KEY AUTOINCREMENT,
                    event_id TEXT NOT NULL UNIQUE,
                    stream_id TEXT NOT NULL,
                    stream_type TEXT NOT NULL,
                    version INTEGER NOT NULL,
                    command_id TEXT NOT NULL,
                    event_type TEXT NOT NULL,
                    occurred_at TEXT NOT NULL,
                    actor_id TEXT,
                    payload_json TEXT NOT NULL,

                    UNIQUE(stream_id, version)
                )
            """)

            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_events_stream "
                "ON events(stream_id, version)"
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_events_command ON events(command_id)"
            )

            conn.commit()

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database connections (always closed)"""
        conn = sqlite3.connect(str(self.db_path), timeout=5.0)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    @retry_on_sqlite_lock()
    def append(
        self,
        stream_id: str,
        expected_version: int,
        events: list[Event],
    ) -> list[Event]:
        """
        Append events to a stream with optimistic locking

        Args:
            stream_id: Aggregate identifier
            expected_version: Stream version the events were computed against
            events: Events to append (sequential versions after expected_version)

        Returns:
            The appended events, or the previously committed events when
            the same command_id was already applied to this stream

        Raises:
            StreamVersionConflict: If the stream moved past expected_version
            CommandIdempotencyViolation: If command_id was used on another stream
            EventStoreError: On other database errors
        """
        if not events:
            return []

        command_id = events[0].command_id
        existing = self._get_events_by_command_id(command_id)
        if existing:
            in_stream = [e for e in existing if e.stream_id == stream_id]
            if in_stream:
                logger.info(
                    "Command already committed, returning existing events",
                    command_id=command_id,
                    stream_id=stream_id,
                )
                return in_stream
            raise CommandIdempotencyViolation(
                command_id,
                f"Command {command_id} already committed to stream {existing[0].stream_id}",
            )

        with self._connect() as conn:
            try:
                current_version = self._get_stream_version(conn, stream_id)
                if current_version != expected_version:
                    stream_version_conflicts_total.labels(
                        stream_type=events[0].stream_type
                    ).inc()
                    raise StreamVersionConflict(stream_id, expected_version, current_version)

                for event in events:
                    conn.execute(
                        """
                        INSERT INTO events (
                            event_id, stream_id, stream_type, version,
                            command_id, event_type, occurred_at, actor_id, payload_json
                        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                        (
                            event.event_id,
                            event.stream_id,
                            event.stream_type,
                            event.version,
                            event.command_id,
                            event.event_type,
                            event.occurred_at.isoformat(),
                            event.actor_id,
                            json.dumps(event.payload),
                        ),
                    )

                conn.commit()

            except sqlite3.IntegrityError as e:
                conn.rollback()
                error_msg = str(e).lower()

                # Lost a race with another writer on the same stream
                if "stream_id" in error_msg and "version" in error_msg:
                    stream_version_conflicts_total.labels(
                        stream_type=events[0].stream_type
                    ).inc()
                    current = self._get_stream_version(conn, stream_id)
                    raise StreamVersionConflict(stream_id, expected_version, current) from e

                raise EventStoreError(f"Failed to append events: {e}") from e

            except (StreamVersionConflict, sqlite3.OperationalError):
                conn.rollback()
                raise

            except Exception as e:
                conn.rollback()
                raise EventStoreError(f"Unexpected error appending events: {e}") from e

        for event in events:
            events_appended_total.labels(
                stream_type=event.stream_type, event_type=event.event_type
            ).inc()
        return events

    def load_stream(self, stream_id: str) -> list[Event]:
        """Load all events for a stream in version order"""
        with self._connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT {_EVENT_COLUMNS}
                FROM events
                WHERE stream_id = ?
                ORDER BY version ASC
            """,
                (stream_id,),
            )
            events = [self._row_to_event(row) for row in cursor.fetchall()]

        events_loaded_total.labels(scope="stream").inc(len(events))
        return events

    def load_all_events(
        self,
        after_sequence: int = 0,
        limit: int | None = None,
    ) -> list[Event]:
        """
        Load events in commit order (for projection rebuilding)

        Args:
            after_sequence: Only events committed after this sequence number
            limit: Maximum number of events to return, or None for all
        """
        query = f"""
            SELECT {_EVENT_COLUMNS}
            FROM events
            WHERE sequence > ?
            ORDER BY sequence ASC
        """
        params: tuple = (after_sequence,)
        if limit:
            query += " LIMIT ?"
            params = (after_sequence, limit)

        with self._connect() as conn:
            cursor = conn.execute(query, params)
            events = [self._row_to_event(row) for row in cursor.fetchall()]

        events_loaded_total.labels(scope="all").inc(len(events))
        return events

    def get_stream_version(self, stream_id: str) -> int:
        """Current version of a stream (0 if the stream doesn't exist)"""
        with self._connect() as conn:
            return self._get_stream_version(conn, stream_id)

    def _get_stream_version(self, conn: sqlite3.Connection, stream_id: str) -> int:
        cursor = conn.execute(
            "SELECT MAX(version) FROM events WHERE stream_id = ?",
            (stream_id,),
        )
        row = cursor.fetchone()
        return row[0] if row[0] is not None else 0

    def _get_events_by_command_id(self, command_id: str) -> list[Event]:
        with self._connect() as conn:
            cursor = conn.execute(
                f"""
                SELECT {_EVENT_COLUMNS}
                FROM events
                WHERE command_id = ?
                ORDER BY sequence ASC
            """,
                (command_id,),
            )
            return [self._row_to_event(row) for row in cursor.fetchall()]

    def _row_to_event(self, row: sqlite3.Row) -> Event:
        return Event(
            event_id=row["event_id"],
            stream_id=row["stream_id"],
            stream_type=row["stream_type"],
            version=row["version"],
            command_id=row["command_id"],
            event_type=row["event_type"],
            occurred_at=datetime.fromisoformat(row["occurred_at"]),
            actor_id=row["actor_id"],
            payload=json.loads(row["payload_json"]),
            sequence=row["sequence"],
        )

    def count_events(self) -> int:
        """Total number of events in store"""
        with self._connect() as conn:
            return conn.execute("SELECT COUNT(*) FROM events").fetchone()[0]

    def count_streams(self) -> int:
        """Total number of distinct streams"""
        with self._connect() as conn:
            return conn.execute("SELECT COUNT(DISTINCT stream_id) FROM events").fetchone()[0]
