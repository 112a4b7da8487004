# herdsim/engine/normalizer.py
from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from herdsim import logs
from herdsim.config.simulation_config import SUPPORTED_HORIZONS
from herdsim.core.time import DAY_HOURS, US_PER_DAY, US_PER_HOUR
from herdsim.core.types import Record
from herdsim.utils.errors import ConfigurationError, InvalidInputError


@dataclass(frozen=True)
class Dataset:
    """
    Dataset (FROZEN)

    Invariants:
    - records sorted by ts_us ascending (stable for equal ts)
    - non-empty => start_us <= every ts_us <= end_us
    - read-only after normalize()
    """
    records: Sequence[Record]
    _timestamps: List[int] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "_timestamps", [r.ts_us for r in self.records])

    def __len__(self) -> int:
        return len(self.records)

    @property
    def is_empty(self) -> bool:
        return not self.records

    @property
    def start_us(self) -> Optional[int]:
        return self._timestamps[0] if self._timestamps else None

    @property
    def end_us(self) -> Optional[int]:
        return self._timestamps[-1] if self._timestamps else None

    @property
    def span_us(self) -> int:
        if self.is_empty:
            return 0
        return self.end_us - self.start_us

    def count_until(self, ts_us: int) -> int:
        """Number of records with ts <= ts_us."""
        return bisect_right(self._timestamps, ts_us)

    def entity_ids(self) -> List[str]:
        return sorted({r.entity_id for r in self.records})


def normalize(records: Iterable[Record], horizon_hours: int = DAY_HOURS) -> Dataset:
    """
    Sort records once and optionally extend them to a 48h horizon.

    Extension prepends a copy of every record shifted back by 24h, so the
    dataset reads as two consecutive days ending at the original end.
    """
    if horizon_hours not in SUPPORTED_HORIZONS:
        raise ConfigurationError(
            f"[normalize] unsupported horizon_hours={horizon_hours}, "
            f"expected one of {SUPPORTED_HORIZONS}"
        )

    # sorted() is stable: equal ts keep encounter order
    ordered = sorted(records, key=lambda r: r.ts_us)

    needs_extension = horizon_hours > DAY_HOURS
    if not ordered:
        if needs_extension:
            raise InvalidInputError(
                f"[normalize] cannot extend an empty dataset to {horizon_hours}h"
            )
        logs.warning("[normalize] empty dataset, waiting for data")
        return Dataset(records=[])

    span_us = ordered[-1].ts_us - ordered[0].ts_us
    if not needs_extension or horizon_hours * US_PER_HOUR <= span_us:
        return Dataset(records=ordered)

    shifted = [r.shifted(-US_PER_DAY) for r in ordered]
    logs.info(
        f"[normalize] extended {len(ordered)} records to {horizon_hours}h "
        f"({len(ordered) * 2} records)"
    )
    # stable merge: the shifted copy precedes originals on equal ts
    return Dataset(records=sorted(shifted + ordered, key=lambda r: r.ts_us))
