#!filepath: tests/engine/test_clock.py
from datetime import datetime, timezone, timedelta

import pytest

from herdsim.config.simulation_config import SimulationConfig
from herdsim.core.time import US_PER_DAY, US_PER_HOUR, US_PER_MINUTE, US_PER_SECOND, to_us
from herdsim.core.types import ClockState, Mode, Record
from herdsim.engine.clock import (
    LiveClock,
    ReplayClock,
    SimulationClock,
    progress_percent,
    replay_step_us,
)
from herdsim.engine.normalizer import normalize
from herdsim.utils.errors import InvalidInputError


# ============================================================
# pure helpers
# ============================================================
def test_replay_step_default_speed_is_six_minutes_per_tick():
    # 60 = 1h of data per real second, 10 ticks per second
    assert replay_step_us(60, 100) == 6 * US_PER_MINUTE


def test_replay_step_scales_with_tick_period():
    assert replay_step_us(60, 1000) == 60 * US_PER_MINUTE
    assert replay_step_us(1, 100) == 6 * US_PER_SECOND


def test_progress_percent_clamped():
    assert progress_percent(0, 0, 100) == 0.0
    assert progress_percent(50, 0, 100) == 50.0
    assert progress_percent(150, 0, 100) == 100.0
    assert progress_percent(-10, 0, 100) == 0.0


def test_progress_percent_zero_span_is_100():
    assert progress_percent(7, 7, 7) == 100.0


def test_replay_clock_wraps_modulo_span():
    """
    span=10min, step=3min：
      3, 6, 9, 12 → 12 wraps to 2
    """
    m = US_PER_MINUTE
    clock = ReplayClock(start_us=0, end_us=10 * m, step_us=3 * m)

    t = 0
    seen = []
    for _ in range(4):
        t = clock.advance(t)
        seen.append(t // m)

    assert seen == [3, 6, 9, 2]


def test_replay_clock_exact_end_wraps_to_start():
    m = US_PER_MINUTE
    clock = ReplayClock(start_us=0, end_us=10 * m, step_us=5 * m)

    assert clock.advance(5 * m) == 0


def test_replay_clock_iter_loops_forever():
    clock = ReplayClock(start_us=0, end_us=4, step_us=1)
    it = iter(clock)
    assert [next(it) for _ in range(6)] == [1, 2, 3, 0, 1, 2]


def test_live_clock_candidate_uses_end_date_and_wall_time_of_day():
    end = datetime(2025, 12, 1, 7, 50, tzinfo=timezone.utc)
    start = end - timedelta(hours=23, minutes=50)
    clock = LiveClock(start_us=to_us(start), end_us=to_us(end), tz=timezone.utc)

    w = datetime(2031, 6, 2, 13, 21, 5, 250_000, tzinfo=timezone.utc)

    assert clock.candidate(w) == to_us(datetime(2025, 12, 1, 13, 21, 5, 250_000, tzinfo=timezone.utc))


@pytest.mark.parametrize(
    "hour, minute, expected",
    [
        # after end (07:50 Dec 1) -> previous day
        (13, 0, datetime(2025, 11, 30, 13, 0, tzinfo=timezone.utc)),
        # before end on end date -> kept
        (6, 30, datetime(2025, 12, 1, 6, 30, tzinfo=timezone.utc)),
        (8, 0, datetime(2025, 11, 30, 8, 0, tzinfo=timezone.utc)),
    ],
)
def test_live_clock_folds_into_dataset_range(hour, minute, expected):
    start = datetime(2025, 11, 30, 8, 0, tzinfo=timezone.utc)
    end = datetime(2025, 12, 1, 7, 50, tzinfo=timezone.utc)
    clock = LiveClock(start_us=to_us(start), end_us=to_us(end), tz=timezone.utc)

    got = clock.at(datetime(2030, 1, 1, hour, minute, tzinfo=timezone.utc))

    assert got == to_us(expected)
    assert to_us(start) <= got <= to_us(end)


def test_live_clock_respects_timezone():
    from zoneinfo import ZoneInfo

    tz = ZoneInfo("Asia/Shanghai")
    end = datetime(2025, 12, 1, 23, 0, tzinfo=tz)
    clock = LiveClock(start_us=to_us(end) - US_PER_DAY, end_us=to_us(end), tz=tz)

    # 02:00 UTC == 10:00 Shanghai
    got = clock.at(datetime(2030, 1, 1, 2, 0, tzinfo=timezone.utc))

    assert got == to_us(datetime(2025, 12, 1, 10, 0, tzinfo=tz))


# ============================================================
# state machine
# ============================================================
def _dataset(t0_us, minutes=(0, 10)):
    return normalize([Record("A", t0_us + m * US_PER_MINUTE, {}) for m in minutes], 24)


def test_clock_starts_stopped(replay_config):
    clock = SimulationClock(replay_config)

    assert clock.state is ClockState.STOPPED
    assert clock.virtual_now_us is None
    assert clock.tick() is None


def test_clock_load_empty_raises_and_stays_stopped(replay_config):
    clock = SimulationClock(replay_config)

    with pytest.raises(InvalidInputError):
        clock.load(normalize([], 24))

    assert clock.state is ClockState.STOPPED


def test_clock_start_without_dataset_raises(replay_config):
    with pytest.raises(InvalidInputError):
        SimulationClock(replay_config).start()


def test_clock_load_initializes_to_dataset_start(replay_config, t0_us):
    clock = SimulationClock(replay_config)
    clock.load(_dataset(t0_us))

    assert clock.state is ClockState.RUNNING
    assert clock.virtual_now_us == t0_us
    assert clock.progress == 0.0


def test_replay_four_ticks_wrap_to_two_minutes(replay_config, t0_us):
    clock = SimulationClock(replay_config)
    clock.load(_dataset(t0_us))

    for _ in range(4):
        clock.tick()

    assert clock.virtual_now_us == t0_us + 2 * US_PER_MINUTE
    assert clock.progress == pytest.approx(20.0)


def test_replay_progress_tracks_virtual_time(replay_config, t0_us):
    clock = SimulationClock(replay_config)
    clock.load(_dataset(t0_us))

    clock.tick()

    assert clock.progress == pytest.approx(30.0)


def test_single_record_dataset_progress_is_100(replay_config, t0_us):
    clock = SimulationClock(replay_config)
    clock.load(_dataset(t0_us, minutes=(0,)))

    assert clock.tick() == t0_us
    assert clock.progress == 100.0


def test_reset_returns_to_start(replay_config, t0_us):
    clock = SimulationClock(replay_config)
    clock.load(_dataset(t0_us))
    clock.tick()
    clock.tick()

    clock.reset()

    assert clock.virtual_now_us == t0_us
    assert clock.state is ClockState.RUNNING


def test_reset_while_stopped_still_rewinds(replay_config, t0_us):
    clock = SimulationClock(replay_config)
    clock.load(_dataset(t0_us))
    clock.tick()
    clock.stop()

    clock.reset()

    assert clock.virtual_now_us == t0_us
    assert clock.state is ClockState.STOPPED


def test_stop_halts_ticks_and_start_resumes(replay_config, t0_us):
    clock = SimulationClock(replay_config)
    clock.load(_dataset(t0_us))
    clock.stop()

    assert clock.tick() is None
    assert clock.virtual_now_us == t0_us

    clock.start()
    assert clock.tick() == t0_us + 3 * US_PER_MINUTE


def test_set_mode_switches_policy_and_resets(replay_config, t0_us, wall):
    clock = SimulationClock(replay_config, now_fn=wall(8, 4))
    clock.load(_dataset(t0_us))
    clock.tick()

    clock.set_mode(Mode.LIVE)

    assert clock.mode is Mode.LIVE
    assert clock.virtual_now_us == t0_us
    assert clock.tick() == t0_us + 4 * US_PER_MINUTE


def test_live_tick_reads_wall_clock(t0_us, wall):
    config = SimulationConfig.create(mode="LIVE")
    clock = SimulationClock(config, now_fn=wall(20, 0))
    clock.load(_dataset(t0_us, minutes=(0, 24 * 60 - 10)))

    now = clock.tick()

    # 20:00 on the end date (Dec 1) is past the end (07:50) -> Nov 30 20:00
    assert now == t0_us + 12 * US_PER_HOUR
    assert clock.progress == pytest.approx(12 * 60 / (24 * 60 - 10) * 100)


def test_next_time_does_not_commit(replay_config, t0_us):
    clock = SimulationClock(replay_config)
    clock.load(_dataset(t0_us))

    nxt = clock.next_time()

    assert nxt == t0_us + 3 * US_PER_MINUTE
    assert clock.virtual_now_us == t0_us


def test_failing_wall_clock_leaves_state_intact(t0_us):
    def broken():
        raise RuntimeError("clock source gone")

    clock = SimulationClock(SimulationConfig.create(mode="LIVE"), now_fn=broken)
    clock.load(_dataset(t0_us))

    with pytest.raises(RuntimeError):
        clock.tick()

    assert clock.virtual_now_us == t0_us
    assert clock.progress == 0.0
