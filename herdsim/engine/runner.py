# herdsim/engine/runner.py
from __future__ import annotations

import threading
import time
from typing import List, Optional

from herdsim import logs
from herdsim.core.types import TickSnapshot
from herdsim.engine.simulation import LiveSimulation
from herdsim.observability.instrumentation import Instrumentation, NoOpInstrumentation


class SimulationRunner:
    """
    Fixed-period tick driver.

    - one background thread, one tick at a time
    - a tick that would overlap a running one is dropped (ticks_dropped)
    - periods missed because a tick ran long are skipped, not replayed
    - a failing tick is logged and counted (tick_errors); the next period
      starts from the last committed state
    """

    def __init__(
        self,
        simulation: LiveSimulation,
        inst: Instrumentation | NoOpInstrumentation | None = None,
    ) -> None:
        self.simulation = simulation
        # same validated period the clock derives its replay step from
        self.period_s = simulation.config.tick_period_ms / 1000
        self.inst = inst if inst is not None else Instrumentation()

        self._tick_guard = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # --------------------------------------------------
    # Single tick
    # --------------------------------------------------
    def fire(self) -> Optional[TickSnapshot]:
        if not self._tick_guard.acquire(blocking=False):
            self.inst.metrics.incr("ticks_dropped")
            return None
        try:
            with self.inst.timer("tick"):
                snapshot = self.simulation.tick()
            self.inst.metrics.incr("ticks" if snapshot is not None else "ticks_idle")
            return snapshot
        finally:
            self._tick_guard.release()

    def run_ticks(self, n: int) -> List[TickSnapshot]:
        """Synchronous stepping, no sleeping. STOPPED ticks are skipped."""
        out = []
        for _ in range(n):
            snap = self.fire()
            if snap is not None:
                out.append(snap)
        return out

    # --------------------------------------------------
    # Background loop
    # --------------------------------------------------
    def start(self) -> None:
        if self.is_alive:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="herdsim-ticker", daemon=True)
        self._thread.start()
        logs.info(f"[SimulationRunner] started period={self.period_s * 1000:.0f}ms")

    def stop(self, timeout: Optional[float] = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            if self._thread.is_alive():
                logs.warning(f"[SimulationRunner] ticker did not stop within {timeout}s")
                return
            self._thread = None
        logs.info(f"[SimulationRunner] stopped metrics={self.inst.metrics.metrics}")

    def __enter__(self) -> "SimulationRunner":
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()

    def _loop(self) -> None:
        next_fire = time.monotonic()
        while not self._stop.is_set():
            try:
                self.fire()
            except Exception:
                self.inst.metrics.incr("tick_errors")
                logs.exception("[SimulationRunner] tick aborted")

            next_fire += self.period_s
            now = time.monotonic()
            while next_fire <= now:
                next_fire += self.period_s
                self.inst.metrics.incr("ticks_dropped")

            self._stop.wait(next_fire - now)
