import logging
import sqlite3
import sys
from pathlib import Path

import pytest

# Allow `import placeskv` without installing the package.
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

SCHEMA = """
CREATE TABLE moz_places (
  id INTEGER PRIMARY KEY,
  url TEXT,
  title TEXT,
  rev_host TEXT,
  visit_count INTEGER DEFAULT 0,
  hidden INTEGER DEFAULT 0,
  typed INTEGER DEFAULT 0,
  favicon_id INTEGER,
  frecency INTEGER DEFAULT -1,
  last_visit_date INTEGER,
  guid TEXT
);
CREATE TABLE moz_historyvisits (
  id INTEGER PRIMARY KEY,
  from_visit INTEGER,
  place_id INTEGER,
  visit_date INTEGER,
  visit_type INTEGER,
  session INTEGER
);
CREATE TABLE moz_bookmarks (
  id INTEGER PRIMARY KEY,
  type INTEGER,
  fk INTEGER DEFAULT NULL,
  parent INTEGER,
  position INTEGER,
  title TEXT,
  keyword_id INTEGER,
  folder_type TEXT,
  dateAdded INTEGER,
  lastModified INTEGER,
  guid TEXT
);
CREATE TABLE moz_bookmarks_roots (root_name TEXT PRIMARY KEY, folder_id INTEGER);
CREATE TABLE moz_keywords (id INTEGER PRIMARY KEY AUTOINCREMENT, keyword TEXT UNIQUE);
CREATE TABLE moz_favicons (
  id INTEGER PRIMARY KEY,
  url TEXT UNIQUE,
  data BLOB,
  mime_type TEXT,
  expiration INTEGER,
  guid TEXT
);
CREATE TABLE moz_anno_attributes (id INTEGER PRIMARY KEY, name TEXT UNIQUE NOT NULL);
CREATE TABLE moz_annos (
  id INTEGER PRIMARY KEY,
  place_id INTEGER NOT NULL,
  anno_attribute_id INTEGER,
  mime_type TEXT,
  content TEXT,
  flags INTEGER DEFAULT 0,
  expiration INTEGER DEFAULT 0,
  type INTEGER DEFAULT 0,
  dateAdded INTEGER DEFAULT 0,
  lastModified INTEGER DEFAULT 0
);
CREATE TABLE moz_items_annos (
  id INTEGER PRIMARY KEY,
  item_id INTEGER NOT NULL,
  anno_attribute_id INTEGER,
  mime_type TEXT,
  content TEXT,
  flags INTEGER DEFAULT 0,
  expiration INTEGER DEFAULT 0,
  type INTEGER DEFAULT 0,
  dateAdded INTEGER DEFAULT 0,
  lastModified INTEGER DEFAULT 0
);
CREATE TABLE moz_inputhistory (
  place_id INTEGER NOT NULL,
  input TEXT NOT NULL,
  use_count INTEGER,
  PRIMARY KEY (place_id, input)
);
"""

ROOTS = [("menu", 2), ("toolbar", 3), ("tags", 4), ("unfiled", 5), ("mobile", 6)]

ROOT_FOLDERS = [
    {"id": 1, "type": 2, "parent": 0, "position": 0, "title": "", "guid": "root________"},
    {"id": 2, "type": 2, "parent": 1, "position": 0, "title": "Bookmarks Menu", "guid": "menu________"},
    {"id": 3, "type": 2, "parent": 1, "position": 1, "title": "Bookmarks Toolbar", "guid": "toolbar_____"},
    {"id": 4, "type": 2, "parent": 1, "position": 2, "title": "Tags", "guid": "tags________"},
    {"id": 5, "type": 2, "parent": 1, "position": 3, "title": "Unsorted Bookmarks", "guid": "unfiled_____"},
    {"id": 6, "type": 2, "parent": 1, "position": 4, "title": "Mobile Bookmarks", "guid": "mobile______"},
]

# 2023-11-14T22:13:20Z in PRTime.
T0 = 1_700_000_000_000_000


def _insert(conn: sqlite3.Connection, table: str, rows) -> None:
    for row in rows:
        cols = list(row.keys())
        conn.execute(
            f"INSERT INTO {table} ({', '.join(cols)}) VALUES ({', '.join(['?'] * len(cols))})",
            [row[c] for c in cols],
        )


def build_places_db(path: Path, *, with_roots: bool = True, **tables) -> Path:
    """Create a places.sqlite at ``path``; ``tables`` maps table name -> list of row dicts."""
    conn = sqlite3.connect(path)
    try:
        conn.executescript(SCHEMA)
        if with_roots:
            conn.executemany("INSERT INTO moz_bookmarks_roots(root_name, folder_id) VALUES(?, ?)", ROOTS)
            _insert(conn, "moz_bookmarks", ROOT_FOLDERS)
        for table, rows in tables.items():
            _insert(conn, table, rows)
        conn.commit()
    finally:
        conn.close()
    return path


@pytest.fixture
def places_db(tmp_path: Path):
    def _make(**tables) -> Path:
        return build_places_db(tmp_path / "places.sqlite", **tables)

    return _make


@pytest.fixture(autouse=True)
def _drop_cli_log_handlers():
    """`main()` installs root handlers bound to the captured stderr of one test."""
    yield
    root = logging.getLogger()
    for h in list(root.handlers):
        if type(h) is logging.StreamHandler:
            root.removeHandler(h)
