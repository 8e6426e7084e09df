"""Value types and protocols shared by the oracle, market, agents and engine.

The BSI itself is a plain ``float``; the helpers below keep it inside
``[0.0, 1.0]`` and convert wall-clock style durations into ticks.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Protocol

from ..errors import SimulationFault

BSI_MIN = 0.0
BSI_MAX = 1.0
SECONDS_PER_HOUR = 3600
SECONDS_PER_DAY = 86400


def clamp_bsi(value: float) -> float:
    """Saturate a raw value into the BSI range."""
    if math.isnan(value):
        raise SimulationFault("BSI computation produced NaN")
    return min(BSI_MAX, max(BSI_MIN, value))


def validate_bsi(value: float) -> float:
    """Return ``value`` unchanged, or raise if it left ``[0, 1]``."""
    if not (BSI_MIN <= value <= BSI_MAX):
        raise SimulationFault(f"BSI {value!r} outside [{BSI_MIN}, {BSI_MAX}]")
    return value


def bsi_distance(bsi: float, threshold: float) -> float:
    return abs(bsi - threshold)


def crossed_threshold(previous: float, current: float, threshold: float) -> bool:
    """True when the move from ``previous`` to ``current`` crosses ``threshold``."""
    return (previous < threshold <= current) or (previous > threshold >= current)


def ticks_per_day(update_frequency_secs: int) -> float:
    return SECONDS_PER_DAY / update_frequency_secs


def hours_to_ticks(hours: float, update_frequency_secs: int) -> int:
    # At least one tick so a persistence window can always be satisfied
    return max(1, int(math.ceil(hours * SECONDS_PER_HOUR / update_frequency_secs)))


def days_to_ticks(days: float, update_frequency_secs: int) -> int:
    return int(days * SECONDS_PER_DAY // update_frequency_secs)


class Side(str, Enum):
    """Trade direction. BUY backs resolution, SELL backs non-resolution."""

    BUY = "buy"
    SELL = "sell"

    @property
    def sign(self) -> int:
        return 1 if self is Side.BUY else -1

    def opposite(self) -> "Side":
        return Side.SELL if self is Side.BUY else Side.BUY


@dataclass(frozen=True, slots=True)
class TradeIntent:
    """What a participant wants to do this tick, before the market accepts it."""

    side: Side
    size: float

    @property
    def signed_size(self) -> float:
        return self.side.sign * self.size


@dataclass(frozen=True, slots=True)
class Trade:
    """Immutable record of an accepted trade."""

    trade_id: int
    participant_id: int
    tick: int
    side: Side
    size: float
    bsi: float

    @property
    def signed_size(self) -> float:
        return self.side.sign * self.size


@dataclass(frozen=True, slots=True)
class Position:
    """Open exposure of one participant.

    ``size`` is signed: positive is long resolution, negative is long
    non-resolution.
    """

    entry_bsi: float
    size: float
    open_tick: int

    @property
    def side(self) -> Side:
        return Side.BUY if self.size > 0 else Side.SELL


class Evaluator(Protocol):
    """Consumes per-tick state to build run-level metrics."""

    def on_tick(
        self,
        *,
        tick: int,
        bsi: float,
        market_state: str,
        market_snapshot: Mapping[str, object],
    ) -> None:
        ...

    def finalize(self) -> Mapping[str, float]:
        ...
