from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Optional, TextIO

from .log import get_logger
from .store import OrderedStore

log = get_logger(__name__)


def format_entry(key: bytes, value: Optional[str]) -> str:
    shown_key = json.dumps(key.decode("utf-8"))
    shown_value = "null" if value is None else json.dumps(json.loads(value), indent=2, ensure_ascii=False)
    return f"\nKey: {shown_key}\n{shown_value}"


def dump_store(
    store_path: Path | str,
    *,
    prefix: str = "",
    limit: Optional[int] = None,
    out: TextIO = sys.stdout,
) -> int:
    """Print store entries in key order; returns how many were printed."""
    n = 0
    store = OrderedStore.open_existing(store_path)
    try:
        for key, value in store.iterate(prefix.encode("utf-8")):
            if limit is not None and n >= limit:
                break
            out.write(format_entry(key, value) + "\n")
            n += 1
    finally:
        store.close()
    out.write("----------- FIN -------------\n")
    log.debug("dumped %d entries from %s", n, store_path)
    return n
