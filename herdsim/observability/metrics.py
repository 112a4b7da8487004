#!filepath: herdsim/observability/metrics.py
from dataclasses import dataclass, field
from typing import Dict, Any
from herdsim import logs


@dataclass
class MetricRecorder:
    enabled: bool = True
    verbose: bool = False
    metrics: Dict[str, Any] = field(default_factory=dict)

    def record(self, name: str, value: Any):
        if not self.enabled:
            return
        self.metrics[name] = value
        if self.verbose:
            logs.info(f"[Metric] {name} = {value}")

    def incr(self, name: str, amount: int = 1) -> int:
        if not self.enabled:
            return 0
        value = self.metrics.get(name, 0) + amount
        self.metrics[name] = value
        return value
