# herdsim/engine/segmentation.py
from __future__ import annotations

from collections import Counter
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from herdsim.core.types import Interval, Record, StateSample

STATE_LABELS = {
    0: "Lying",
    1: "Standing",
    2: "Eating",
}

# index in this tuple == categorical state
STATE_PCT_FIELDS = ("pct_lying", "pct_standing", "pct_eating")


def segment(samples: Iterable[StateSample]) -> List[Interval]:
    """
    Run-length compress a per-sample state stream into maximal intervals.

    - input order does not matter: sorted by (entity_id, ts_us), stable
    - one open interval, closed on entity change or state change
    - every sample lands in exactly one interval
    """
    ordered = sorted(samples, key=lambda s: (s.entity_id, s.ts_us))
    if not ordered:
        return []

    out: List[Interval] = []
    head = ordered[0]
    entity, state, start, end = head.entity_id, head.state, head.ts_us, head.ts_us

    for s in ordered[1:]:
        if s.entity_id == entity and s.state == state:
            end = s.ts_us
            continue
        out.append(Interval(entity_id=entity, state=state, start_us=start, end_us=end))
        entity, state, start, end = s.entity_id, s.state, s.ts_us, s.ts_us

    out.append(Interval(entity_id=entity, state=state, start_us=start, end_us=end))
    return out


def derive_state(
    record: Record,
    state_field: Optional[str] = "Classification",
    pct_fields: Sequence[str] = STATE_PCT_FIELDS,
) -> int:
    """
    Categorical state of a record.

    Uses state_field when the record carries it, otherwise the arg-max of
    pct_fields (earlier field wins ties).
    """
    if state_field is not None:
        explicit = record.get(state_field)
        if explicit is not None:
            return int(explicit)

    best_state, best_value = 0, None
    for idx, name in enumerate(pct_fields):
        value = record.get(name)
        if value is None:
            continue
        if best_value is None or value > best_value:
            best_state, best_value = idx, value

    if best_value is None:
        raise ValueError(
            f"record {record.entity_id}@{record.ts_us} has neither "
            f"{state_field} nor any of {list(pct_fields)}"
        )
    return best_state


def to_state_samples(
    records: Iterable[Record],
    entity_id: Optional[str] = None,
    state_field: Optional[str] = "Classification",
    pct_fields: Sequence[str] = STATE_PCT_FIELDS,
) -> List[StateSample]:
    return [
        StateSample(
            entity_id=r.entity_id,
            ts_us=r.ts_us,
            state=derive_state(r, state_field, pct_fields),
        )
        for r in records
        if entity_id is None or r.entity_id == entity_id
    ]


def group_by_entity(intervals: Iterable[Interval]) -> Dict[str, List[Interval]]:
    grouped: Dict[str, List[Interval]] = {}
    for iv in intervals:
        grouped.setdefault(iv.entity_id, []).append(iv)
    return grouped


def timeline_bounds(intervals: Sequence[Interval]) -> Optional[Tuple[int, int]]:
    if not intervals:
        return None
    return min(iv.start_us for iv in intervals), max(iv.end_us for iv in intervals)


def state_counts(samples: Iterable[StateSample]) -> Dict[int, int]:
    """Sample count per state (each sample is one sensor period)."""
    return dict(Counter(s.state for s in samples))
