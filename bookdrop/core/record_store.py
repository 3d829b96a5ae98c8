"""Record Store: user destinations and the append-only delivery log.

Design:
- ``users`` is keyed by user id; ``set_destination`` is an upsert
  (last write wins, no versioning).
- ``deliveries`` is append-only: only ``append_delivery_record`` writes
  to it; there is no update or delete.
- One connection per call with WAL journal mode and a busy timeout, so
  concurrent workers never share a connection or cursor.
- Every ``sqlite3.Error`` is surfaced as ``StoreError``.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

from bookdrop.core.errors import StoreError
from bookdrop.models.records import DeliveryRecord, UserConfig


# ---------------------------------------------------------------------------
# DDL
# ---------------------------------------------------------------------------

_CREATE_USERS = """
CREATE TABLE IF NOT EXISTS users (
    user_id      INTEGER PRIMARY KEY,
    destination  TEXT NOT NULL,
    created_at   TEXT NOT NULL
);
"""

_CREATE_DELIVERIES = """
CREATE TABLE IF NOT EXISTS deliveries (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id     INTEGER NOT NULL,
    name        TEXT NOT NULL,
    size        INTEGER NOT NULL,
    created_at  TEXT NOT NULL,
    FOREIGN KEY(user_id) REFERENCES users(user_id)
);
"""

_CREATE_IDX_USER = """
CREATE INDEX IF NOT EXISTS idx_deliveries_user ON deliveries(user_id, id);
"""


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class RecordStore:
    """SQLite-backed store for ``UserConfig`` and ``DeliveryRecord`` rows.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file.  Created if it does not exist.
    timeout:
        Seconds a statement waits on a locked database before failing.
    """

    def __init__(self, db_path: Path, *, timeout: float = 5.0) -> None:
        self._db_path = Path(db_path)
        self._timeout = timeout
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(
            str(self._db_path), timeout=self._timeout, check_same_thread=False
        )
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    @contextmanager
    def _session(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection, commit on success, always close."""
        try:
            conn = self._connect()
        except sqlite3.Error as exc:
            raise StoreError(f"cannot open record store {self._db_path}: {exc}") from exc
        try:
            with conn:
                yield conn
        except sqlite3.Error as exc:
            raise StoreError(f"record store statement failed: {exc}") from exc
        finally:
            conn.close()

    def _init_schema(self) -> None:
        with self._session() as conn:
            conn.execute(_CREATE_USERS)
            conn.execute(_CREATE_DELIVERIES)
            conn.execute(_CREATE_IDX_USER)

    # ------------------------------------------------------------------
    # User destinations
    # ------------------------------------------------------------------

    def get_destination(self, user_id: int) -> str | None:
        """Return the user's destination, or ``None`` if none is stored."""
        with self._session() as conn:
            row = conn.execute(
                "SELECT destination FROM users WHERE user_id = ?", (user_id,)
            ).fetchone()
        return row[0] if row else None

    def set_destination(self, user_id: int, destination: str) -> None:
        """Insert or overwrite the user's destination.

        Callers validate *destination* before calling; the store does
        not re-check it.
        """
        with self._session() as conn:
            conn.execute(
                """
                INSERT INTO users (user_id, destination, created_at)
                VALUES (?, ?, ?)
                ON CONFLICT(user_id) DO UPDATE SET destination = excluded.destination
                """,
                (user_id, destination, _utc_now()),
            )

    def get_user_config(self, user_id: int) -> UserConfig | None:
        with self._session() as conn:
            row = conn.execute(
                "SELECT user_id, destination, created_at FROM users WHERE user_id = ?",
                (user_id,),
            ).fetchone()
        if row is None:
            return None
        return UserConfig(user_id=row[0], destination=row[1], created_at=row[2])

    # ------------------------------------------------------------------
    # Delivery log (append-only)
    # ------------------------------------------------------------------

    def append_delivery_record(self, user_id: int, name: str, size: int) -> int:
        """Append one delivery row and return its surrogate id.

        This is the ONLY write to ``deliveries``.
        """
        with self._session() as conn:
            cursor = conn.execute(
                "INSERT INTO deliveries (user_id, name, size, created_at) VALUES (?, ?, ?, ?)",
                (user_id, name, size, _utc_now()),
            )
            return int(cursor.lastrowid)

    def list_delivery_records(
        self, user_id: int | None = None, *, limit: int = 100
    ) -> list[DeliveryRecord]:
        """Return the most recent delivery rows, newest first."""
        query = "SELECT id, user_id, name, size, created_at FROM deliveries"
        params: tuple = ()
        if user_id is not None:
            query += " WHERE user_id = ?"
            params = (user_id,)
        query += " ORDER BY id DESC LIMIT ?"
        with self._session() as conn:
            rows = conn.execute(query, (*params, limit)).fetchall()
        return [self._row_to_record(row) for row in rows]

    def count_delivery_records(self, user_id: int | None = None) -> int:
        with self._session() as conn:
            if user_id is None:
                row = conn.execute("SELECT COUNT(*) FROM deliveries").fetchone()
            else:
                row = conn.execute(
                    "SELECT COUNT(*) FROM deliveries WHERE user_id = ?", (user_id,)
                ).fetchone()
        return row[0] if row else 0

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_record(row: tuple) -> DeliveryRecord:
        record_id, user_id, name, size, created_at = row
        return DeliveryRecord(
            id=record_id,
            user_id=user_id,
            name=name,
            size=size,
            created_at=created_at,
        )
