from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Dict, Iterator, Optional

from .errors import SourceOpenError
from .log import get_logger

log = get_logger(__name__)

_ROOT_GUID_TO_NAME = {
    "menu________": "menu",
    "toolbar_____": "toolbar",
    "tags________": "tags",
    "unfiled_____": "unfiled",
    "mobile______": "mobile",
}


class PlacesSource:
    """Read-only row scans over a Firefox places.sqlite.

    Every table except moz_places is optional: scanning a table the profile
    does not have yields nothing.
    """

    def __init__(self, db_path: Path | str):
        self.db_path = Path(db_path)
        self.conn: sqlite3.Connection | None = None

    def __enter__(self) -> "PlacesSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def open(self) -> None:
        if not self.db_path.is_file():
            raise SourceOpenError(f"places database not found: {self.db_path}")
        uri = f"file:{self.db_path.as_posix()}?mode=ro"
        try:
            self.conn = sqlite3.connect(uri, uri=True)
            self.conn.row_factory = sqlite3.Row
            has_places = self.has_table("moz_places")
        except sqlite3.Error as e:
            self.close()
            raise SourceOpenError(f"cannot read places database {self.db_path}: {e}") from e
        if not has_places:
            self.close()
            raise SourceOpenError(f"{self.db_path} has no moz_places table")
        log.info("places SQLite DB opened: %s", self.db_path)

    def close(self) -> None:
        if self.conn is not None:
            self.conn.close()
            self.conn = None

    def scan_anno_attributes(self) -> Iterator[sqlite3.Row]:
        return self._scan("moz_anno_attributes")

    def scan_place_annotations(self) -> Iterator[sqlite3.Row]:
        return self._scan("moz_annos")

    def scan_bookmark_annotations(self) -> Iterator[sqlite3.Row]:
        return self._scan("moz_items_annos")

    def scan_input_history(self) -> Iterator[sqlite3.Row]:
        return self._scan("moz_inputhistory")

    def scan_keywords(self) -> Iterator[sqlite3.Row]:
        return self._scan("moz_keywords")

    def scan_favicons(self) -> Iterator[sqlite3.Row]:
        return self._scan("moz_favicons")

    def scan_visits(self) -> Iterator[sqlite3.Row]:
        # Ascending time: a visit's from_visit has always been seen already.
        return self._scan("moz_historyvisits", order_by="visit_date ASC, id ASC")

    def scan_bookmarks(self) -> Iterator[sqlite3.Row]:
        return self._scan("moz_bookmarks", order_by="id")

    def scan_places(self) -> Iterator[sqlite3.Row]:
        # Url order puts a site's root page ahead of its deeper pages.
        return self._scan("moz_places", order_by="url")

    def read_bookmark_roots(self) -> Dict[str, int]:
        out: Dict[str, int] = {}
        for r in self._scan("moz_bookmarks_roots"):
            out[str(r["root_name"])] = int(r["folder_id"])
        if not out and self.has_column("moz_bookmarks", "guid"):
            # Newer desktop profiles lack moz_bookmarks_roots; derive roots by stable GUIDs.
            c = self._cursor()
            rows = c.execute(
                "SELECT id, guid FROM moz_bookmarks WHERE guid IN (?, ?, ?, ?, ?)",
                tuple(_ROOT_GUID_TO_NAME.keys()),
            ).fetchall()
            for r in rows:
                name = _ROOT_GUID_TO_NAME.get(str(r["guid"]))
                if name:
                    out[name] = int(r["id"])
        return out

    def has_table(self, name: str) -> bool:
        c = self._cursor()
        row = c.execute(
            "SELECT 1 FROM sqlite_master WHERE type='table' AND name=? LIMIT 1",
            (name,),
        ).fetchone()
        return row is not None

    def has_column(self, table_name: str, column_name: str) -> bool:
        if not self.has_table(table_name):
            return False
        c = self._cursor()
        rows = c.execute(f"PRAGMA table_info({table_name})").fetchall()
        return any(str(r[1]) == column_name for r in rows)

    def _scan(self, table_name: str, *, order_by: Optional[str] = None) -> Iterator[sqlite3.Row]:
        if not self.has_table(table_name):
            log.debug("table %s not present; skipping", table_name)
            return iter(())
        sql = f"SELECT * FROM {table_name}"
        if order_by:
            sql += f" ORDER BY {order_by}"
        return iter(self._cursor().execute(sql))

    def _cursor(self) -> sqlite3.Cursor:
        if self.conn is None:
            raise RuntimeError("database is not open")
        return self.conn.cursor()


def col(row: sqlite3.Row, name: str, default=None):
    """Column value, or ``default`` when the column is absent or NULL."""
    if name not in row.keys():
        return default
    v = row[name]
    return default if v is None else v
