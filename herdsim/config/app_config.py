#!filepath: herdsim/config/app_config.py
import yaml
from pydantic import BaseModel, ValidationError
from dotenv import load_dotenv
import os

from .log_config import LogConfig
from .data_config import DataConfig
from .simulation_config import SimulationConfig
from herdsim.utils.errors import ConfigurationError
from herdsim import logs


def project_root() -> str:
    """
    herdsim/config/app_config.py → herdsim/config → herdsim → project_root
    """
    return os.path.abspath(os.path.join(os.path.dirname(__file__), "../../"))


# env var -> (section, key)
ENV_OVERRIDES = {
    "HERDSIM_MODE": ("simulation", "mode"),
    "HERDSIM_REPLAY_SPEED": ("simulation", "replay_speed"),
    "HERDSIM_HORIZON_HOURS": ("simulation", "horizon_hours"),
    "HERDSIM_DATA_PATH": ("data", "path"),
}


class AppConfig(BaseModel):
    log: LogConfig = LogConfig()
    data: DataConfig = DataConfig()
    simulation: SimulationConfig = SimulationConfig()

    @classmethod
    def load(cls, path: str | None = None) -> "AppConfig":
        """
        加载 YAML 配置 + .env
        - 默认使用包内 herdsim/config/base.yml
        - 环境变量覆盖 YAML
        """
        root = project_root()

        load_dotenv(os.path.join(root, ".env"))

        if path is None:
            path = os.path.join(os.path.dirname(__file__), "base.yml")

        if not os.path.exists(path):
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        for env_name, (section, key) in ENV_OVERRIDES.items():
            value = os.getenv(env_name)
            if value:
                raw.setdefault(section, {})[key] = value
                logs.debug(f"[AppConfig] {env_name} overrides {section}.{key}")

        try:
            return cls(**raw)
        except ValidationError as e:
            raise ConfigurationError(f"[AppConfig] invalid config {path}: {e}") from e
