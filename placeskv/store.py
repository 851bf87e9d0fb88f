from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from .errors import PlacesKVError, StoreExistsError
from .log import get_logger

log = get_logger(__name__)

Pair = Tuple[bytes, Optional[str]]


class WriteBatch:
    def __init__(self) -> None:
        self.ops: List[Pair] = []

    def put(self, key: bytes, value: Optional[str]) -> None:
        self.ops.append((key, value))

    def __len__(self) -> int:
        return len(self.ops)


class OrderedStore:
    """Sorted key-value store on a single SQLite table.

    Keys are BLOBs, which SQLite compares with memcmp, so iteration follows
    byte-lexicographic key order. A value of None is a bare existence marker.
    """

    def __init__(self, db_path: Path | str):
        self.db_path = Path(db_path)
        self.conn: sqlite3.Connection | None = None

    def __enter__(self) -> "OrderedStore":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @classmethod
    def create(cls, db_path: Path | str) -> "OrderedStore":
        store = cls(db_path)
        if store.db_path.exists():
            raise StoreExistsError(f"output store already exists: {store.db_path}")
        try:
            store.db_path.parent.mkdir(parents=True, exist_ok=True)
            store.conn = sqlite3.connect(store.db_path)
            store.conn.execute(
                "CREATE TABLE kv (key BLOB PRIMARY KEY, value TEXT) WITHOUT ROWID"
            )
            store.conn.commit()
        except (OSError, sqlite3.Error) as e:
            store.close()
            raise PlacesKVError(f"cannot create output store {store.db_path}: {e}") from e
        log.info("ordered store created: %s", store.db_path)
        return store

    @classmethod
    def open_existing(cls, db_path: Path | str) -> "OrderedStore":
        store = cls(db_path)
        if not store.db_path.is_file():
            raise FileNotFoundError(f"store not found: {store.db_path}")
        uri = f"file:{store.db_path.as_posix()}?mode=ro"
        store.conn = sqlite3.connect(uri, uri=True)
        return store

    def close(self) -> None:
        if self.conn is not None:
            self.conn.close()
            self.conn = None

    def write(self, batch: WriteBatch) -> None:
        """Apply ``batch`` atomically; returns once the transaction is committed."""
        conn = self._conn()
        with conn:
            conn.executemany("INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)", batch.ops)

    def get(self, key: bytes) -> Optional[str]:
        row = self._conn().execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        if row is None:
            raise KeyError(key)
        return row[0]

    def __contains__(self, key: bytes) -> bool:
        return self._conn().execute("SELECT 1 FROM kv WHERE key = ?", (key,)).fetchone() is not None

    def iterate(self, prefix: bytes = b"") -> Iterator[Pair]:
        c = self._conn()
        if not prefix:
            rows = c.execute("SELECT key, value FROM kv ORDER BY key")
        else:
            upper = _prefix_upper_bound(prefix)
            if upper is None:
                rows = c.execute("SELECT key, value FROM kv WHERE key >= ? ORDER BY key", (prefix,))
            else:
                rows = c.execute(
                    "SELECT key, value FROM kv WHERE key >= ? AND key < ? ORDER BY key",
                    (prefix, upper),
                )
        for key, value in rows:
            yield bytes(key), value

    def count(self) -> int:
        return int(self._conn().execute("SELECT COUNT(*) FROM kv").fetchone()[0])

    def _conn(self) -> sqlite3.Connection:
        if self.conn is None:
            raise RuntimeError("store is not open")
        return self.conn


def _prefix_upper_bound(prefix: bytes) -> Optional[bytes]:
    # Smallest key greater than every key starting with prefix.
    p = bytearray(prefix)
    while p and p[-1] == 0xFF:
        p.pop()
    if not p:
        return None
    p[-1] += 1
    return bytes(p)
