from __future__ import annotations

from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, Field, ValidationError, field_validator

from herdsim.core.types import Mode
from herdsim.utils.errors import ConfigurationError

SUPPORTED_HORIZONS = (24, 48)


class SimulationConfig(BaseModel):
    """
    SimulationConfig（FROZEN）

    语义：
      - 一次模拟运行的“外部配置面”
      - 在时钟启动前校验，非法值 -> ConfigurationError
    """

    model_config = {"frozen": True}

    mode: Mode = Mode.REPLAY

    # dataset minutes per real second (60 = 1h of data per second)
    replay_speed: float = Field(60.0, gt=0)

    horizon_hours: int = 24

    tick_period_ms: int = Field(100, gt=0)

    # calendar used by LIVE time-of-day mapping
    timezone: str = "UTC"

    # None -> nondeterministic live noise
    noise_seed: Optional[int] = None

    @field_validator("horizon_hours")
    @classmethod
    def _supported_horizon(cls, v: int) -> int:
        if v not in SUPPORTED_HORIZONS:
            raise ValueError(f"horizon_hours must be one of {SUPPORTED_HORIZONS}, got {v}")
        return v

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, v: str) -> str:
        if v.upper() == "UTC":
            return "UTC"
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"unknown timezone: {v}") from e
        return v

    @classmethod
    def create(cls, **kwargs) -> "SimulationConfig":
        """
        Build and validate; pydantic errors surface as ConfigurationError.
        """
        try:
            return cls(**kwargs)
        except ValidationError as e:
            raise ConfigurationError(f"[SimulationConfig] invalid configuration: {e}") from e

    @property
    def tick_period_us(self) -> int:
        return self.tick_period_ms * 1_000
