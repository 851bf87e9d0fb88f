from __future__ import annotations

from typing import Optional

from .log import get_logger
from .store import OrderedStore, WriteBatch

log = get_logger(__name__)


class BatchedWriter:
    """Groups puts into batches of ``limit`` source rows.

    ``row_done()`` is called once per source row; when ``limit`` rows have
    accumulated the batch is committed before the next one is started, so at
    most one batch is ever held in memory.
    """

    def __init__(self, store: OrderedStore, limit: int = 1000):
        if limit < 1:
            raise ValueError("batch limit must be >= 1")
        self.store = store
        self.limit = limit
        self.batch = WriteBatch()
        self.rows_in_batch = 0
        self.rows_total = 0
        self.puts_total = 0
        self.batches_written = 0

    def put(self, key: bytes, value: Optional[str]) -> None:
        self.batch.put(key, value)
        self.puts_total += 1

    def row_done(self) -> None:
        self.rows_in_batch += 1
        self.rows_total += 1
        if self.rows_in_batch >= self.limit:
            self.flush()

    def flush(self) -> None:
        if not len(self.batch):
            self.rows_in_batch = 0
            return
        self.store.write(self.batch)
        self.batches_written += 1
        log.debug("committed batch %d: %d rows, %d puts", self.batches_written, self.rows_in_batch, len(self.batch))
        self.batch = WriteBatch()
        self.rows_in_batch = 0

    def close(self) -> None:
        self.flush()
