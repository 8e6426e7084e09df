"""Stochastic BSI process driving each simulation run.

Each tick the next sample is built from the previous one:

    reversion = k * (target - bsi)
    drift     = sign * drift
    noise     ~ N(0, volatility)
    shock     = scheduled (and optionally random) jumps
    next      = clamp(bsi + reversion + drift + noise + shock)

``oracle_next`` is a pure transition: it returns a new ``OracleState`` and
leaves the input untouched, except for the generator which is owned by the
state and advanced in place.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Tuple

import numpy as np

from ..simulation.interfaces import clamp_bsi, validate_bsi


class ShockKind(str, Enum):
    FLASH_CRASH = "flash_crash"
    SENTIMENT_REVERSAL = "sentiment_reversal"
    NONE = "none"


class ResolutionDirection(str, Enum):
    """Which side of the threshold resolves the market."""

    UP = "up"      # BSI >= threshold
    DOWN = "down"  # BSI <= threshold


@dataclass(frozen=True, slots=True)
class ShockEvent:
    tick: int
    magnitude: float
    kind: ShockKind = ShockKind.NONE


@dataclass(frozen=True)
class ScenarioParameters:
    """Tick-scale parameter bundle consumed read-only by the kernel."""

    name: str = "custom"
    initial_bsi: float = 0.5
    drift_target: float = 0.5
    drift: float = 0.0
    volatility: float = 0.0
    reversion_strength: float = 0.0
    shocks: Tuple[ShockEvent, ...] = ()
    recommended_participants: int = 500
    resolution_direction: ResolutionDirection = ResolutionDirection.UP
    circuit_breaker: Optional[float] = None
    random_shock_probability: float = 0.0
    random_shock_magnitude: float = 0.0

    def shocks_at(self, tick: int) -> Tuple[ShockEvent, ...]:
        return tuple(shock for shock in self.shocks if shock.tick == tick)


@dataclass(frozen=True)
class OracleState:
    bsi: float
    drift_target: float
    rng: np.random.Generator = field(repr=False, compare=False)
    drift_sign: float = 1.0
    tick: int = 0


def create_oracle_state(scenario: ScenarioParameters, rng: np.random.Generator) -> OracleState:
    return OracleState(
        bsi=clamp_bsi(scenario.initial_bsi),
        drift_target=scenario.drift_target,
        rng=rng,
    )


def oracle_next(state: OracleState, scenario: ScenarioParameters) -> Tuple[float, OracleState]:
    """Produce the BSI sample for ``state.tick`` and the state for the next tick."""
    current = state.bsi
    drift_sign = state.drift_sign

    reversion = scenario.reversion_strength * (state.drift_target - current)
    drift = drift_sign * scenario.drift
    # Always draw so the stream position is independent of the parameters
    noise = float(state.rng.normal(0.0, 1.0)) * scenario.volatility

    shock = 0.0
    for event in scenario.shocks_at(state.tick):
        shock += event.magnitude
        if event.kind is ShockKind.SENTIMENT_REVERSAL:
            drift_sign = -drift_sign

    if scenario.random_shock_probability > 0.0:
        if state.rng.random() < scenario.random_shock_probability:
            shock += float(
                state.rng.uniform(-scenario.random_shock_magnitude, scenario.random_shock_magnitude)
            )

    new_bsi = validate_bsi(clamp_bsi(current + reversion + drift + noise + shock))
    new_state = replace(state, bsi=new_bsi, drift_sign=drift_sign, tick=state.tick + 1)
    return new_bsi, new_state


class OracleProcess:
    """Stateful convenience wrapper around ``oracle_next`` for one run."""

    def __init__(self, scenario: ScenarioParameters, rng: np.random.Generator):
        self.scenario = scenario
        self._state = create_oracle_state(scenario, rng)

    @property
    def state(self) -> OracleState:
        return self._state

    @property
    def current_bsi(self) -> float:
        return self._state.bsi

    def next(self) -> float:
        bsi, self._state = oracle_next(self._state, self.scenario)
        return bsi
