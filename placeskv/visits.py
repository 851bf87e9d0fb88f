from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .config import Settings
from .errors import OUT_OF_RANGE_TIMESTAMP, OutOfRangeError, WarningLog
from .lexi import lexiform_timestamp, with_disambiguator
from .log import get_logger
from .model import Visit
from .places_source import PlacesSource, col

log = get_logger(__name__)


@dataclass
class VisitChains:
    visits_by_place_id: Dict[int, List[Visit]] = field(default_factory=dict)
    key_by_visit_id: Dict[int, str] = field(default_factory=dict)

    def for_place(self, place_id: int) -> List[Visit]:
        return self.visits_by_place_id.get(place_id, [])


class VisitKeyer:
    """Assigns collision-free visit keys to visits fed in ascending time order."""

    def __init__(self, floor: int, ceiling: int):
        self.floor = floor
        self.ceiling = ceiling
        self._last_ts: Optional[int] = None
        self._next_unique = 0

    def key_for(self, visit_date: int) -> str:
        key = lexiform_timestamp(visit_date, self.floor, self.ceiling)
        if visit_date == self._last_ts:
            key = with_disambiguator(key, self._next_unique)
            self._next_unique += 1
        else:
            self._last_ts = visit_date
            self._next_unique = 0
        return key


def build_visit_chains(source: PlacesSource, settings: Settings, warnings: WarningLog) -> VisitChains:
    log.info("slurping history visits")
    chains = VisitChains()
    keyer = VisitKeyer(settings.oldest_legal_date_us, settings.most_future_legal_date_us)
    skipped = 0
    for r in source.scan_visits():
        visit_id = int(r["id"])
        visit_date = int(col(r, "visit_date", 0))
        try:
            key = keyer.key_for(visit_date)
        except OutOfRangeError as e:
            skipped += 1
            warnings.warn(OUT_OF_RANGE_TIMESTAMP, f"visit {visit_id} skipped: {e}", subject=str(visit_id))
            continue
        chains.key_by_visit_id[visit_id] = key

        from_visit = col(r, "from_visit")
        prev_key = chains.key_by_visit_id.get(int(from_visit)) if from_visit else None
        place_id = int(r["place_id"])
        chains.visits_by_place_id.setdefault(place_id, []).append(
            Visit(
                id=visit_id,
                place_id=place_id,
                visit_date=visit_date,
                key=key,
                prev_key=prev_key,
                type=col(r, "visit_type"),
                session=col(r, "session"),
            )
        )
    log.info(
        "slurped %d history visits for %d places (%d skipped)",
        len(chains.key_by_visit_id),
        len(chains.visits_by_place_id),
        skipped,
    )
    return chains
