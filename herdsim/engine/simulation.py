# herdsim/engine/simulation.py
from __future__ import annotations

import threading
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional

from herdsim import logs
from herdsim.config.simulation_config import SimulationConfig
from herdsim.core.time import from_us, resolve_tz
from herdsim.core.types import ClockState, Interval, Mode, Record, TickSnapshot
from herdsim.engine.clock import SimulationClock
from herdsim.engine.normalizer import Dataset, normalize
from herdsim.engine.segmentation import group_by_entity, segment, to_state_samples
from herdsim.engine.window import NoiseInjector, slice_window

TickCallback = Callable[[TickSnapshot], None]


class LiveSimulation:
    """
    LiveSimulation

    Owns exactly one SimulationClock, the normalized Dataset and the current
    Window. Consumers only read derived outputs:
      - pull : current_window() / current_time() / progress / timeline()
      - push : subscribe(callback) -> called with a TickSnapshot per tick

    tick / reset / set_mode / load are serialized under one lock, so a mode
    switch is fully applied before the next tick observes state.
    """

    def __init__(
        self,
        config: SimulationConfig,
        now_fn: Optional[Callable[[], datetime]] = None,
        noise: Optional[NoiseInjector] = None,
        state_field: Optional[str] = "Classification",
    ) -> None:
        self.config = config
        self.state_field = state_field
        self._tz = resolve_tz(config.timezone)
        self._clock = SimulationClock(config, now_fn=now_fn)
        self._noise = noise if noise is not None else NoiseInjector(seed=config.noise_seed)

        self._dataset = Dataset(records=[])
        self._window: List[Record] = []
        self._subscribers: List[TickCallback] = []
        self._lock = threading.RLock()

    # --------------------------------------------------
    # Lifecycle
    # --------------------------------------------------
    def load(self, records: Iterable[Record]) -> Dataset:
        """
        Normalize records with the configured horizon and start the clock.

        Raises InvalidInputError on an empty dataset (clock stays STOPPED).
        """
        dataset = normalize(records, self.config.horizon_hours)
        with self._lock:
            self._clock.load(dataset)
            self._dataset = dataset
            self._window = []
        logs.info(
            f"[LiveSimulation] loaded {len(dataset)} records, "
            f"{len(dataset.entity_ids())} entities"
        )
        return dataset

    def start(self) -> None:
        with self._lock:
            self._clock.start()

    def stop(self) -> None:
        with self._lock:
            self._clock.stop()
        logs.info("[LiveSimulation] stopped")

    def reset(self) -> None:
        with self._lock:
            self._clock.reset()
            self._window = []

    def set_mode(self, mode: Mode) -> None:
        # restart: history is cleared rather than recomputed at the new time
        with self._lock:
            self._clock.set_mode(mode)
            self._window = []

    def subscribe(self, callback: TickCallback) -> Callable[[], None]:
        with self._lock:
            self._subscribers.append(callback)

        def _unsubscribe():
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return _unsubscribe

    # --------------------------------------------------
    # Tick
    # --------------------------------------------------
    def tick(self) -> Optional[TickSnapshot]:
        """
        One simulation step. None while STOPPED ("waiting for data").

        Time and window are computed first and committed together;
        any exception leaves the previous state untouched.
        """
        with self._lock:
            now_us = self._clock.next_time()
            if now_us is None:
                return None

            mode = self._clock.mode
            window = slice_window(self._dataset, now_us, mode, noise=self._noise)

            self._clock.advance_to(now_us)
            self._window = window
            snapshot = TickSnapshot(
                virtual_now_us=now_us,
                progress=self._clock.progress,
                mode=mode,
                window=window,
            )
            subscribers = list(self._subscribers)

        for callback in subscribers:
            try:
                callback(snapshot)
            except Exception:
                logs.exception(f"[LiveSimulation] subscriber {callback!r} failed")

        return snapshot

    # --------------------------------------------------
    # Pull queries
    # --------------------------------------------------
    @property
    def dataset(self) -> Dataset:
        return self._dataset

    @property
    def state(self) -> ClockState:
        return self._clock.state

    @property
    def mode(self) -> Mode:
        return self._clock.mode

    @property
    def progress(self) -> float:
        return self._clock.progress

    def current_time_us(self) -> Optional[int]:
        return self._clock.virtual_now_us

    def current_time(self) -> Optional[datetime]:
        now_us = self._clock.virtual_now_us
        return None if now_us is None else from_us(now_us, self._tz)

    def current_window(self) -> List[Record]:
        with self._lock:
            return list(self._window)

    def timeline(self, entity_id: Optional[str] = None) -> Dict[str, List[Interval]]:
        """
        Segmented state intervals of the current window, keyed by entity.
        """
        samples = to_state_samples(
            self.current_window(), entity_id=entity_id, state_field=self.state_field
        )
        return group_by_entity(segment(samples))
