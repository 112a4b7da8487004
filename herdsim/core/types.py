from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, List, Mapping
# herdsim/core/types.py


class Mode(str, Enum):
    LIVE = "LIVE"
    REPLAY = "REPLAY"


class ClockState(str, Enum):
    STOPPED = "STOPPED"
    RUNNING = "RUNNING"


# -------------------------
# Dataset
# -------------------------
@dataclass(frozen=True)
class Record:
    """
    One timestamped observation for one entity.

    Immutable: noise injection / horizon extension produce new records
    via with_fields() / shifted().
    """
    entity_id: str
    ts_us: int
    fields: Mapping[str, Any] = field(default_factory=dict)

    def get(self, name: str, default: Any = None) -> Any:
        return self.fields.get(name, default)

    def __getitem__(self, name: str) -> Any:
        return self.fields[name]

    def with_fields(self, updates: Mapping[str, Any]) -> "Record":
        merged = dict(self.fields)
        merged.update(updates)
        return replace(self, fields=merged)

    def shifted(self, delta_us: int) -> "Record":
        return replace(self, ts_us=self.ts_us + delta_us)


# -------------------------
# Segmentation
# -------------------------
@dataclass(frozen=True)
class StateSample:
    entity_id: str
    ts_us: int
    state: int


@dataclass(frozen=True)
class Interval:
    entity_id: str
    state: int
    start_us: int
    end_us: int


# -------------------------
# Tick output
# -------------------------
@dataclass(frozen=True)
class TickSnapshot:
    """
    Per-tick output handed to rendering collaborators.
    """
    virtual_now_us: int
    progress: float
    mode: Mode
    window: List[Record]

    @property
    def window_size(self) -> int:
        return len(self.window)

