"""Simulation control API client and configuration editing."""

from simulation.config_model import (
    CONFIG_PATHS,
    DEFAULT_SIMULATION_CONFIG,
    LOAD_PATTERNS,
    ConfigModel,
    validate_config,
)
from simulation.control_client import SimulationControlClient

__all__ = [
    "CONFIG_PATHS",
    "DEFAULT_SIMULATION_CONFIG",
    "LOAD_PATTERNS",
    "ConfigModel",
    "SimulationControlClient",
    "validate_config",
]
