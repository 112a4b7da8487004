# herdsim/engine/window.py
from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from herdsim.core.types import Mode, Record
from herdsim.engine.normalizer import Dataset


@dataclass(frozen=True)
class NoiseSpec:
    """
    Bounded jitter for one live-sensor field.

    bound : max absolute deviation (half-width of the uniform draw)
    clamp : optional (lo, hi) applied after the draw
    """
    bound: float
    clamp: Optional[Tuple[float, float]] = None


PCT_FIELDS = ("pct_lying", "pct_standing", "pct_walking", "pct_eating")

DEFAULT_NOISE: Dict[str, NoiseSpec] = {
    # posture memberships, each clamped on its own (sum is not renormalized)
    **{name: NoiseSpec(bound=0.005, clamp=(0.0, 1.0)) for name in PCT_FIELDS},
    "neck_temp_c": NoiseSpec(bound=0.05),
    "activity_index": NoiseSpec(bound=1.0),
    "heat_index": NoiseSpec(bound=0.25),
    "gps_lat": NoiseSpec(bound=0.00005),
    "gps_long": NoiseSpec(bound=0.00005),
}


def _is_number(v) -> bool:
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        return False
    return not math.isnan(v)


class NoiseInjector:
    """
    Produces a perturbed copy of a record; never mutates the input.
    """

    def __init__(
        self,
        specs: Optional[Dict[str, NoiseSpec]] = None,
        seed: Optional[int] = None,
    ) -> None:
        self.specs = dict(DEFAULT_NOISE if specs is None else specs)
        self._rng = random.Random(seed)

    def perturb(self, record: Record) -> Record:
        updates = {}
        for name, spec in self.specs.items():
            value = record.get(name)
            if not _is_number(value):
                continue
            noisy = value + (self._rng.random() - 0.5) * 2 * spec.bound
            if spec.clamp is not None:
                lo, hi = spec.clamp
                noisy = max(lo, min(hi, noisy))
            updates[name] = noisy
        return record.with_fields(updates)


def slice_window(
    dataset: Dataset,
    now_us: int,
    mode: Mode,
    noise: Optional[NoiseInjector] = None,
) -> List[Record]:
    """
    Records visible at now_us (ts <= now_us), in dataset order.

    LIVE: the single most recent record of the window is swapped for a
    jittered copy. REPLAY is never perturbed.
    """
    window = list(dataset.records[: dataset.count_until(now_us)])

    if mode is Mode.LIVE and window:
        injector = noise if noise is not None else NoiseInjector()
        window[-1] = injector.perturb(window[-1])

    return window


def latest_per_entity(window: Sequence[Record]) -> Dict[str, Record]:
    latest: Dict[str, Record] = {}
    for r in window:
        latest[r.entity_id] = r
    return latest


def recency_ranks(window: Sequence[Record], entity_id: str) -> List[int]:
    """
    Rank per record of one entity: 0 = newest, 1 = the one before, ...

    Renderers use it for trail effects; order matches the entity's records
    in the window.
    """
    n = sum(1 for r in window if r.entity_id == entity_id)
    return list(range(n - 1, -1, -1))
