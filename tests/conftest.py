# tests/conftest.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable, List, Tuple

import pytest
from loguru import logger

from herdsim.config.simulation_config import SimulationConfig
from herdsim.core.time import US_PER_MINUTE, to_us
from herdsim.core.types import Record


@pytest.fixture(autouse=True)
def disable_file_logger():
    logger.remove()
    logger.add(lambda msg: None)
    yield


T0 = datetime(2025, 11, 30, 8, 0, tzinfo=timezone.utc)


@pytest.fixture
def t0_us() -> int:
    return to_us(T0)


@pytest.fixture
def make_records(t0_us):
    """
    Factory: make_records([(entity, minute_offset, fields), ...])
    """

    def _make(rows: Iterable[Tuple[str, int, dict]]) -> List[Record]:
        return [
            Record(entity_id=e, ts_us=t0_us + m * US_PER_MINUTE, fields=dict(f))
            for e, m, f in rows
        ]

    return _make


@pytest.fixture
def ten_minute_records(make_records):
    """A@0, A@5, B@5, A@10 minutes (dataset span = 10 minutes)."""
    return make_records(
        [
            ("A", 0, {"Classification": 0, "pct_lying": 0.9}),
            ("A", 5, {"Classification": 0, "pct_lying": 0.8}),
            ("B", 5, {"Classification": 1, "pct_lying": 0.1}),
            ("A", 10, {"Classification": 1, "pct_lying": 0.2}),
        ]
    )


@pytest.fixture
def replay_config() -> SimulationConfig:
    # 30 dataset-min/s @ 100ms -> 3 minutes per tick
    return SimulationConfig.create(mode="REPLAY", replay_speed=30, tick_period_ms=100)


@pytest.fixture
def live_config() -> SimulationConfig:
    return SimulationConfig.create(mode="LIVE", noise_seed=42)


@pytest.fixture
def wall():
    """Factory: now_fn returning a fixed wall clock (its date is irrelevant to LIVE mapping)."""

    def _wall(hour: int, minute: int = 0, second: int = 0, micro: int = 0):
        return lambda: datetime(2030, 1, 15, hour, minute, second, micro, tzinfo=timezone.utc)

    return _wall
