"""Configuration and scenario catalog for BSI market simulation."""

from .config import SimulationConfig
from .scenarios import (
    SCENARIOS,
    Scenario,
    ScheduledShock,
    all_scenarios,
    custom_scenario,
    get_scenario,
    load_scenarios,
    scenario_from_dict,
)

__all__ = [
    "SimulationConfig",
    "SCENARIOS",
    "Scenario",
    "ScheduledShock",
    "all_scenarios",
    "custom_scenario",
    "get_scenario",
    "load_scenarios",
    "scenario_from_dict",
]
