"""Exports for the simulation subpackage."""

from .engine import (
    SimulationEngine,
    SimulationResult,
    SimulationRuntimeConfig,
    resolve_parameters,
    run_simulation,
)
from .interfaces import (
    Evaluator,
    Position,
    Side,
    Trade,
    TradeIntent,
    clamp_bsi,
    crossed_threshold,
    validate_bsi,
)
from .logging import SimulationLogger, create_logger

__all__ = [
    "SimulationEngine",
    "SimulationRuntimeConfig",
    "SimulationResult",
    "resolve_parameters",
    "run_simulation",
    "Evaluator",
    "Position",
    "Side",
    "Trade",
    "TradeIntent",
    "clamp_bsi",
    "crossed_threshold",
    "validate_bsi",
    "SimulationLogger",
    "create_logger",
]
