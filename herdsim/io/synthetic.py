#!filepath: herdsim/io/synthetic.py
from __future__ import annotations

import random
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from herdsim.core.time import US_PER_DAY, US_PER_MINUTE, to_us
from herdsim.core.types import Record

LYING, STANDING, EATING = 0, 1, 2

# (base minutes, spread minutes) per profile and state
BOUT_MINUTES: Dict[str, Dict[int, tuple]] = {
    "normal": {LYING: (60, 60), STANDING: (20, 30), EATING: (25, 20)},
    "active": {LYING: (45, 60), STANDING: (45, 30), EATING: (40, 20)},
    "lazy": {LYING: (90, 60), STANDING: (20, 30), EATING: (25, 20)},
}


def profile_of(index: int) -> str:
    if index < 4:
        return "normal"
    return "active" if index < 7 else "lazy"


def _next_state(state: int, rng: random.Random) -> int:
    if state == LYING:
        return STANDING
    if state == STANDING:
        return EATING if rng.random() > 0.6 else LYING
    return STANDING


def _posture_pcts(state: int, rng: random.Random) -> Dict[str, float]:
    dominant = 0.7 + rng.random() * 0.25
    rest = 1.0 - dominant
    walking = rest * rng.random() * 0.5
    split = (rest - walking) / 2
    pcts = {"pct_lying": split, "pct_standing": split, "pct_eating": split}
    key = ("pct_lying", "pct_standing", "pct_eating")[state]
    pcts[key] = dominant
    pcts["pct_walking"] = walking
    return pcts


def generate_day(
    entity_ids: Sequence[str] = tuple(str(100 + i) for i in range(10)),
    day_start: Optional[datetime] = None,
    seed: Optional[int] = None,
    step_minutes: int = 10,
) -> List[Record]:
    """
    One synthetic day of posture bouts per entity, sampled every step_minutes.

    Bouts cycle lying -> standing -> (eating | lying); durations depend on the
    entity profile. Records carry Classification plus pct_* memberships and
    a few health / environment readings.
    """
    rng = random.Random(seed)
    if day_start is None:
        day_start = datetime.now(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
    start_us = to_us(day_start)
    end_us = start_us + US_PER_DAY
    step_us = step_minutes * US_PER_MINUTE

    rows: List[Record] = []
    for idx, entity in enumerate(entity_ids):
        minutes = BOUT_MINUTES[profile_of(idx)]
        t, state = start_us, LYING
        while t < end_us:
            base, spread = minutes[state]
            duration = max(5, int(base + rng.random() * spread - spread / 2))
            for _ in range(max(1, duration // step_minutes)):
                if t >= end_us:
                    break
                fields = {
                    "Classification": state,
                    **_posture_pcts(state, rng),
                    "neck_temp_c": round(38.5 + rng.gauss(0, 0.2), 2),
                    "activity_index": round(20 + rng.random() * 60 * (state != LYING), 1),
                }
                rows.append(Record(entity_id=entity, ts_us=t, fields=fields))
                t += step_us
            state = _next_state(state, rng)
    return rows
