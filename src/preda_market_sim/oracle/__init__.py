"""Oracle process producing the Belief State Index each tick."""

from .process import (
    OracleProcess,
    OracleState,
    ResolutionDirection,
    ScenarioParameters,
    ShockEvent,
    ShockKind,
    create_oracle_state,
    oracle_next,
)

__all__ = [
    "OracleProcess",
    "OracleState",
    "ResolutionDirection",
    "ScenarioParameters",
    "ShockEvent",
    "ShockKind",
    "create_oracle_state",
    "oracle_next",
]
