# herdsim/engine/clock.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Callable, Iterator, Optional

from herdsim import logs
from herdsim.config.simulation_config import SimulationConfig
from herdsim.core.time import US_PER_DAY, US_PER_MINUTE, US_PER_SECOND, resolve_tz, with_time_of_day
from herdsim.core.types import ClockState, Mode
from herdsim.engine.normalizer import Dataset
from herdsim.utils.errors import InvalidInputError


def replay_step_us(replay_speed: float, tick_period_ms: int) -> int:
    """
    Virtual microseconds advanced per tick.

    replay_speed is dataset-minutes per real second:
    speed 60 @ 100ms -> 6 minutes per tick.
    """
    ticks_per_second = 1000 / tick_period_ms
    return int(round(replay_speed * US_PER_MINUTE / ticks_per_second))


def progress_percent(now_us: int, start_us: int, end_us: int) -> float:
    total = end_us - start_us
    if total <= 0:
        return 100.0
    frac = (now_us - start_us) / total
    return min(1.0, max(0.0, frac)) * 100


@dataclass(frozen=True)
class ReplayClock:
    """
    Deterministic replay policy.

    - Fast-forwards step_us per tick
    - Loops forever inside [start_us, end_us)
    - Engine consumes it, never mutates it
    """
    start_us: int
    end_us: int
    step_us: int

    def advance(self, now_us: int) -> int:
        nxt = now_us + self.step_us
        if nxt < self.end_us:
            return nxt
        span = self.end_us - self.start_us
        if span <= 0:
            return self.start_us
        return self.start_us + (nxt - self.start_us) % span

    def __iter__(self) -> Iterator[int]:
        t = self.start_us
        while True:
            t = self.advance(t)
            yield t


@dataclass(frozen=True)
class LiveClock:
    """
    Wall-clock policy.

    Maps the wall time-of-day onto end_us's calendar date, then folds the
    candidate back into [start_us, end_us] by one day either way.
    """
    start_us: int
    end_us: int
    tz: tzinfo

    def candidate(self, wall: datetime) -> int:
        return with_time_of_day(self.end_us, wall, self.tz)

    def at(self, wall: datetime) -> int:
        now = self.candidate(wall)
        if now > self.end_us:
            now -= US_PER_DAY
        if now < self.start_us:
            now += US_PER_DAY
        return now


class SimulationClock:
    """
    SimulationClock

    State machine:
      STOPPED --load(dataset)--> RUNNING(mode)
      RUNNING --stop()--> STOPPED --start()--> RUNNING
      reset() / set_mode() -> virtual_now = start_us (state unchanged)

    Each tick computes (virtual_now, progress) into locals and commits them
    together; a failing tick leaves the previous reading intact.
    """

    def __init__(
        self,
        config: SimulationConfig,
        now_fn: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._config = config
        self._tz = resolve_tz(config.timezone)
        self._now_fn = now_fn or (lambda: datetime.now(self._tz))
        self._mode = config.mode

        self._state = ClockState.STOPPED
        self._replay: Optional[ReplayClock] = None
        self._live: Optional[LiveClock] = None
        self._virtual_now: Optional[int] = None
        self._progress = 0.0

    # --------------------------------------------------
    # Readings
    # --------------------------------------------------
    @property
    def state(self) -> ClockState:
        return self._state

    @property
    def mode(self) -> Mode:
        return self._mode

    @property
    def is_running(self) -> bool:
        return self._state is ClockState.RUNNING

    @property
    def virtual_now_us(self) -> Optional[int]:
        return self._virtual_now

    @property
    def progress(self) -> float:
        return self._progress

    # --------------------------------------------------
    # Transitions
    # --------------------------------------------------
    def load(self, dataset: Dataset) -> None:
        if dataset.is_empty:
            raise InvalidInputError("[SimulationClock] cannot start on an empty dataset")

        start, end = dataset.start_us, dataset.end_us
        self._replay = ReplayClock(
            start_us=start,
            end_us=end,
            step_us=replay_step_us(self._config.replay_speed, self._config.tick_period_ms),
        )
        self._live = LiveClock(start_us=start, end_us=end, tz=self._tz)
        self._commit(start)
        self._state = ClockState.RUNNING
        logs.info(
            f"[SimulationClock] RUNNING({self._mode.value}) "
            f"span={(end - start) // US_PER_SECOND}s step={self._replay.step_us}us"
        )

    def start(self) -> None:
        if self._replay is None:
            raise InvalidInputError("[SimulationClock] no dataset loaded")
        self._state = ClockState.RUNNING

    def stop(self) -> None:
        self._state = ClockState.STOPPED

    def reset(self) -> None:
        if self._replay is None:
            return
        self._commit(self._replay.start_us)

    def set_mode(self, mode: Mode) -> None:
        mode = Mode(mode)
        logs.info(f"[SimulationClock] mode {self._mode.value} -> {mode.value}, restarting")
        self._mode = mode
        self.reset()

    # --------------------------------------------------
    # Tick
    # --------------------------------------------------
    def next_time(self) -> Optional[int]:
        """
        Virtual time the next tick would commit. Pure: no state change.
        """
        if not self.is_running:
            return None

        if self._mode is Mode.LIVE:
            return self._live.at(self._now_fn())

        nxt = self._replay.advance(self._virtual_now)
        if nxt <= self._virtual_now:
            logs.debug("[SimulationClock] replay wrapped to dataset start")
        return nxt

    def advance_to(self, now_us: int) -> None:
        self._commit(now_us)

    def tick(self) -> Optional[int]:
        """
        Advance virtual time once. Returns None while STOPPED.
        """
        nxt = self.next_time()
        if nxt is not None:
            self._commit(nxt)
        return nxt

    def _commit(self, now_us: int) -> None:
        progress = progress_percent(now_us, self._replay.start_us, self._replay.end_us)
        self._virtual_now, self._progress = now_us, progress
