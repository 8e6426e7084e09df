"""Participant behavior models.

Six fixed policies turn BSI observations into trade intents. Each policy is a
pure function of the current BSI, a bounded history window, the threshold, the
participant's own position/capital/risk tolerance and its own RNG sub-stream,
so decisions within a tick can be evaluated in any order.

Signal-driven policies open a position in the signal direction, hold while
the signal agrees with the position, and flip (close plus reopen) when it
turns. Sizes scale with risk tolerance and the opening leg never exceeds the
participant's capital.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, NamedTuple, Optional, Sequence

import numpy as np

from ..oracle.process import ResolutionDirection
from ..simulation.interfaces import Position, Side, TradeIntent

HISTORY_WINDOW = 64
MOMENTUM_WINDOW = 24
MOMENTUM_MIN_SLOPE = 2e-4
MOMENTUM_FULL_SLOPE = 2e-3
RANDOM_TRADE_PROBABILITY = 0.02
CONSERVATIVE_CONVICTION = 0.2
AGGRESSIVE_MAX_CLIPS = 5
MIN_TRADE_SIZE = 1e-9

# Fraction of capital committed at full conviction, before risk scaling
RATIONAL_SIZE = 0.5
MOMENTUM_SIZE = 0.1
RANDOM_SIZE = 0.1
CONSERVATIVE_SIZE = 0.2
AGGRESSIVE_SIZE = 0.02


class ParticipantBehavior(str, Enum):
    RATIONAL = "rational"
    MOMENTUM = "momentum"
    CONTRARIAN = "contrarian"
    RANDOM = "random"
    CONSERVATIVE = "conservative"
    AGGRESSIVE = "aggressive"

    @classmethod
    def all(cls) -> list["ParticipantBehavior"]:
        return list(cls)


@dataclass
class Participant:
    """One trader in a run. Mutated only by its owning market."""

    participant_id: int
    behavior: ParticipantBehavior
    capital: float
    risk_tolerance: float
    rng: np.random.Generator = field(repr=False, compare=False)
    position: Optional[Position] = None

    def decide(
        self,
        bsi_now: float,
        history: Sequence[float],
        threshold: float,
        direction: ResolutionDirection = ResolutionDirection.UP,
    ) -> Optional[TradeIntent]:
        return decide(
            self.behavior,
            bsi_now=bsi_now,
            history=history,
            threshold=threshold,
            position=self.position,
            capital=self.capital,
            risk_tolerance=self.risk_tolerance,
            direction=direction,
            rng=self.rng,
        )


class Observation(NamedTuple):
    """Everything a policy is allowed to see."""

    bsi_now: float
    history: Sequence[float]
    threshold: float
    position: Optional[Position]
    capital: float
    risk_tolerance: float
    direction: ResolutionDirection
    rng: np.random.Generator


def gap_signal(obs: Observation) -> float:
    """Signed distance to the threshold; positive means buy.

    For an upward market a BSI below threshold is a buy signal; the downward
    configuration mirrors it.
    """
    gap = obs.threshold - obs.bsi_now
    return gap if obs.direction is ResolutionDirection.UP else -gap


def slope(history: Sequence[float], window: int = MOMENTUM_WINDOW) -> Optional[float]:
    """Average per-tick change over the last ``window`` samples, or None in warm-up."""
    if window < 2 or len(history) < window:
        return None
    return (history[-1] - history[-window]) / (window - 1)


def trend_signal(obs: Observation) -> Optional[float]:
    """Slope oriented so that positive supports resolution."""
    trend = slope(obs.history)
    if trend is None:
        return None
    return trend if obs.direction is ResolutionDirection.UP else -trend


def _enter(side: Side, size: float, obs: Observation) -> Optional[TradeIntent]:
    """Open or flip toward ``side``; hold when already positioned that way."""
    position = obs.position
    if position is not None and position.side is side:
        return None
    size = min(size, obs.capital)
    if position is not None:
        size += abs(position.size)
    if size <= MIN_TRADE_SIZE:
        return None
    return TradeIntent(side=side, size=size)


def _side_of(signal: float) -> Side:
    return Side.BUY if signal > 0 else Side.SELL


def _rational(obs: Observation) -> Optional[TradeIntent]:
    signal = gap_signal(obs)
    if signal == 0.0:
        return None
    size = abs(signal) * RATIONAL_SIZE * obs.risk_tolerance * obs.capital
    return _enter(_side_of(signal), size, obs)


def _momentum_intent(obs: Observation, sign: float) -> Optional[TradeIntent]:
    signal = trend_signal(obs)
    if signal is None or abs(signal) < MOMENTUM_MIN_SLOPE:
        return None
    strength = min(1.0, abs(signal) / MOMENTUM_FULL_SLOPE)
    size = strength * MOMENTUM_SIZE * obs.risk_tolerance * obs.capital
    return _enter(_side_of(sign * signal), size, obs)


def _momentum(obs: Observation) -> Optional[TradeIntent]:
    return _momentum_intent(obs, 1.0)


def _contrarian(obs: Observation) -> Optional[TradeIntent]:
    return _momentum_intent(obs, -1.0)


def _random(obs: Observation) -> Optional[TradeIntent]:
    # Fixed number of draws per tick keeps the sub-stream aligned across ticks
    trade_roll, side_roll, size_roll = obs.rng.random(3)
    if trade_roll >= RANDOM_TRADE_PROBABILITY:
        return None
    max_size = min(RANDOM_SIZE * obs.risk_tolerance * obs.capital, obs.capital)
    size = float(size_roll) * max_size
    if size <= MIN_TRADE_SIZE:
        return None
    return TradeIntent(side=Side.BUY if side_roll < 0.5 else Side.SELL, size=size)


def _conservative(obs: Observation) -> Optional[TradeIntent]:
    signal = gap_signal(obs)
    if abs(signal) < CONSERVATIVE_CONVICTION:
        return None
    size = CONSERVATIVE_SIZE * obs.risk_tolerance * obs.capital
    return _enter(_side_of(signal), size, obs)


def _aggressive(obs: Observation) -> Optional[TradeIntent]:
    signal = gap_signal(obs)
    if signal == 0.0:
        signal = trend_signal(obs) or 0.0
    if signal == 0.0:
        return None
    side = _side_of(signal)
    clip = AGGRESSIVE_SIZE * obs.risk_tolerance * obs.capital
    position = obs.position
    # Keeps adding clips on the same side up to a cap
    if position is not None and position.side is side:
        cap = AGGRESSIVE_MAX_CLIPS * clip
        if abs(position.size) >= cap or clip <= MIN_TRADE_SIZE:
            return None
        return TradeIntent(side=side, size=min(clip, obs.capital))
    return _enter(side, clip, obs)


POLICIES: Dict[ParticipantBehavior, Callable[[Observation], Optional[TradeIntent]]] = {
    ParticipantBehavior.RATIONAL: _rational,
    ParticipantBehavior.MOMENTUM: _momentum,
    ParticipantBehavior.CONTRARIAN: _contrarian,
    ParticipantBehavior.RANDOM: _random,
    ParticipantBehavior.CONSERVATIVE: _conservative,
    ParticipantBehavior.AGGRESSIVE: _aggressive,
}


def decide(
    behavior: ParticipantBehavior,
    *,
    bsi_now: float,
    history: Sequence[float],
    threshold: float,
    position: Optional[Position],
    capital: float,
    risk_tolerance: float,
    direction: ResolutionDirection,
    rng: np.random.Generator,
) -> Optional[TradeIntent]:
    """Dispatch to the policy for ``behavior``. Returns None to stay flat."""
    obs = Observation(
        bsi_now,
        history[-HISTORY_WINDOW:],
        threshold,
        position,
        capital,
        risk_tolerance,
        direction,
        rng,
    )
    return POLICIES[behavior](obs)
