#!filepath: herdsim/__init__.py

from .utils.logger import Logging, logs
from .utils.errors import HerdSimError, InvalidInputError, ConfigurationError
from .config.app_config import AppConfig
from .config.simulation_config import SimulationConfig

__version__ = "0.1.0"

__all__ = [
    "logs", "Logging",
    "HerdSimError", "InvalidInputError", "ConfigurationError",
    "AppConfig",
    "SimulationConfig",
]
