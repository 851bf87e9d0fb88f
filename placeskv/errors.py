"""Fatal errors and non-fatal data warnings raised while converting a places snapshot.

Fatal problems (the source cannot be opened, the output store already exists,
a table scan or batch commit fails) are exceptions and abort the run.
Data-shape anomalies (a bookmark whose parent is gone, a visit outside the
encodable date window, a url that does not parse) are not: they are recorded
as ``DataWarning`` entries on a ``WarningLog`` so the run can finish while
still telling the operator what was left out.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .log import get_logger

log = get_logger(__name__)

MISSING_PARENT = "missing-parent"
MISSING_PLACE = "missing-place"
OUT_OF_RANGE_TIMESTAMP = "out-of-range-timestamp"
FRECENCY_CLAMPED = "frecency-clamped"
MALFORMED_URL = "malformed-url"


class PlacesKVError(RuntimeError):
    pass


class SourceOpenError(PlacesKVError):
    pass


class StoreExistsError(PlacesKVError):
    pass


class ConversionError(PlacesKVError):
    def __init__(self, phase: str, cause: BaseException):
        super().__init__(f"{phase} failed: {cause}")
        self.phase = phase
        self.cause = cause


class OutOfRangeError(ValueError):
    pass


@dataclass(frozen=True)
class DataWarning:
    kind: str
    message: str
    subject: Optional[str] = None


@dataclass
class WarningLog:
    # Past `loud_per_kind` warnings of one kind, the rest go to DEBUG; all are counted.
    loud_per_kind: int = 20
    keep: int = 1000
    warnings: List[DataWarning] = field(default_factory=list)
    counts: Counter = field(default_factory=Counter)

    def warn(self, kind: str, message: str, subject: Optional[str] = None) -> None:
        self.counts[kind] += 1
        if len(self.warnings) < self.keep:
            self.warnings.append(DataWarning(kind=kind, message=message, subject=subject))
        level = logging.WARNING if self.counts[kind] <= self.loud_per_kind else logging.DEBUG
        log.log(level, "[%s] %s", kind, message)

    def of_kind(self, kind: str) -> List[DataWarning]:
        return [w for w in self.warnings if w.kind == kind]

    def summary(self) -> Dict[str, int]:
        return dict(sorted(self.counts.items()))

    def __len__(self) -> int:
        return sum(self.counts.values())
