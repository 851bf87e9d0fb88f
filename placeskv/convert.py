"""The conversion pipeline.

Phases run strictly in order and each one finishes before the next starts:

    join index -> bookmark tree -> visit chains -> place scan + writes

Anything raised inside a phase aborts the run as a ``ConversionError`` that
names the phase. Opening the source or the store fails before any phase
runs. An aborted run can leave a partly written store behind.
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, Optional

from .bookmarks import build_bookmark_hierarchy
from .config import Settings
from .errors import ConversionError, WarningLog
from .join_index import build_join_index
from .log import get_logger, timed
from .places_source import PlacesSource
from .store import OrderedStore
from .transform import PlaceTransformer, TransformStats
from .visits import build_visit_chains
from .writer import BatchedWriter

log = get_logger(__name__)


@dataclass
class ConversionReport:
    stats: TransformStats
    batches_written: int
    puts: int
    warnings: Dict[str, int] = field(default_factory=dict)
    elapsed_ms: int = 0


@contextmanager
def _phase(name: str) -> Iterator[None]:
    try:
        with timed(log, f"phase {name}"):
            yield
    except ConversionError:
        raise
    except Exception as e:
        raise ConversionError(name, e) from e


def convert_places(
    places_path: Path | str,
    out_path: Path | str,
    settings: Optional[Settings] = None,
    warnings: Optional[WarningLog] = None,
) -> ConversionReport:
    settings = settings or Settings()
    warnings = warnings if warnings is not None else WarningLog()
    t0 = time.time()

    with PlacesSource(places_path) as source, OrderedStore.create(out_path) as store:
        with _phase("join-index"):
            index = build_join_index(source)
        with _phase("bookmarks"):
            hierarchy = build_bookmark_hierarchy(source, index, warnings)
        with _phase("visits"):
            visits = build_visit_chains(source, settings, warnings)
        writer = BatchedWriter(store, settings.batch_limit)
        with _phase("transform"):
            stats = PlaceTransformer(index, hierarchy, visits, writer, settings, warnings).run(source)

    report = ConversionReport(
        stats=stats,
        batches_written=writer.batches_written,
        puts=writer.puts_total,
        warnings=warnings.summary(),
        elapsed_ms=int((time.time() - t0) * 1000),
    )
    if len(warnings):
        log.warning("finished with %d data warnings: %s", len(warnings), report.warnings)
    log.info(
        "all done: %d puts in %d batches, %d ms",
        report.puts,
        report.batches_written,
        report.elapsed_ms,
    )
    return report
