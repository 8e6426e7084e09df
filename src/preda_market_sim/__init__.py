"""Seed-reproducible simulator for time-shifted BSI prediction markets."""

import logging

from .errors import (
    ConfigurationError,
    InsufficientCapital,
    MarketClosed,
    MarketError,
    SimulationFault,
    SimulatorError,
)
from .simulation.engine import (
    SimulationEngine,
    SimulationResult,
    SimulationRuntimeConfig,
    run_simulation,
)
from .market import Market, MarketState
from .oracle import OracleProcess, ResolutionDirection, ScenarioParameters, ShockEvent, ShockKind
from .agents import Participant, ParticipantBehavior
from .utils import SimulationConfig, Scenario, get_scenario, all_scenarios, custom_scenario
from .evaluation_metrics import PerformanceMetrics, SimulationAnalytics
from .strategy_backtest import Strategy, StrategyBacktest, StrategyKind, backtest_strategy

logger = logging.getLogger("preda_market_sim")
logger.setLevel(logging.INFO)

if not logger.hasHandlers():
    handler = logging.StreamHandler()
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)

__all__ = [
    "ConfigurationError",
    "InsufficientCapital",
    "MarketClosed",
    "MarketError",
    "SimulationFault",
    "SimulatorError",
    "SimulationEngine",
    "SimulationResult",
    "SimulationRuntimeConfig",
    "run_simulation",
    "Market",
    "MarketState",
    "OracleProcess",
    "ResolutionDirection",
    "ScenarioParameters",
    "ShockEvent",
    "ShockKind",
    "Participant",
    "ParticipantBehavior",
    "SimulationConfig",
    "Scenario",
    "get_scenario",
    "all_scenarios",
    "custom_scenario",
    "PerformanceMetrics",
    "SimulationAnalytics",
    "Strategy",
    "StrategyBacktest",
    "StrategyKind",
    "backtest_strategy",
]
