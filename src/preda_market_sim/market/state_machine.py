"""Market lifecycle for a single simulation run.

States move ACTIVE -> PAUSED -> ACTIVE any number of times and end in
RESOLVED or EXPIRED. Transition rules are evaluated once per tick after the
new BSI is recorded, in this order:

1. persistence: consecutive qualifying ticks reach ``persistence_ticks`` -> RESOLVED
2. expiry: ``tick >= duration_ticks`` -> EXPIRED
3. circuit breaker: single-tick move above the limit -> PAUSED, and back to
   ACTIVE on the first tick whose move is within the limit
"""

from __future__ import annotations

import logging
from dataclasses import InitVar, dataclass
from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from ..agents.participants import Participant
from ..errors import InsufficientCapital, MarketClosed, MarketError, SimulationFault
from ..oracle.process import ResolutionDirection
from ..simulation.interfaces import Position, Side, Trade, validate_bsi

logger = logging.getLogger(__name__)

_EPS = 1e-12


class MarketState(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    RESOLVED = "resolved"
    EXPIRED = "expired"

    @property
    def is_terminal(self) -> bool:
        return self in (MarketState.RESOLVED, MarketState.EXPIRED)


@dataclass(frozen=True)
class MarketStatistics:
    state: MarketState
    total_trades: int
    total_volume: float
    open_positions: int
    current_bsi: Optional[float]
    threshold: float
    persistence_counter: int
    resolution_tick: Optional[int]


@dataclass
class Market:
    """Aggregate root for one run: BSI history, trade log and lifecycle."""

    threshold: float
    persistence_ticks: int
    duration_ticks: int
    direction: ResolutionDirection = ResolutionDirection.UP
    circuit_breaker: Optional[float] = None
    initial_bsi: Optional[float] = None
    participants: InitVar[Iterable[Participant]] = ()

    def __post_init__(self, participants: Iterable[Participant]):
        if self.persistence_ticks < 1:
            raise SimulationFault("persistence_ticks must be at least 1")
        if self.duration_ticks < 0:
            raise SimulationFault("duration_ticks must not be negative")

        self._participants: Dict[int, Participant] = {}
        for participant in participants:
            self.register(participant)

        self._state = MarketState.ACTIVE
        self._history: List[float] = []
        self._trades: List[Trade] = []
        self._total_volume = 0.0
        self._persistence_counter = 0
        self._resolution_tick: Optional[int] = None
        self._last_tick: Optional[int] = None
        self._state_log: List[Tuple[int, MarketState]] = []
        self._paused_ticks: List[int] = []
        self._settled = False

    # -- read-only views -------------------------------------------------

    @property
    def state(self) -> MarketState:
        return self._state

    @property
    def is_terminal(self) -> bool:
        return self._state.is_terminal

    @property
    def history(self) -> Tuple[float, ...]:
        return tuple(self._history)

    @property
    def current_bsi(self) -> Optional[float]:
        return self._history[-1] if self._history else self.initial_bsi

    @property
    def total_volume(self) -> float:
        return self._total_volume

    @property
    def persistence_counter(self) -> int:
        return self._persistence_counter

    @property
    def resolution_tick(self) -> Optional[int]:
        return self._resolution_tick

    @property
    def paused_ticks(self) -> Tuple[int, ...]:
        return tuple(self._paused_ticks)

    @property
    def state_log(self) -> Tuple[Tuple[int, MarketState], ...]:
        return tuple(self._state_log)

    def recent_history(self, window: int) -> Tuple[float, ...]:
        return tuple(self._history[-window:])

    def get_trades(self) -> Tuple[Trade, ...]:
        return tuple(self._trades)

    def participant(self, participant_id: int) -> Participant:
        try:
            return self._participants[participant_id]
        except KeyError:
            raise MarketError(f"Unknown participant {participant_id}") from None

    def iter_participants(self) -> List[Participant]:
        return [self._participants[pid] for pid in sorted(self._participants)]

    # -- mutation --------------------------------------------------------

    def register(self, participant: Participant) -> None:
        if participant.participant_id in self._participants:
            raise MarketError(f"Duplicate participant id {participant.participant_id}")
        self._participants[participant.participant_id] = participant

    def qualifies(self, bsi: float) -> bool:
        """Whether ``bsi`` sits on the resolving side of the threshold."""
        if self.direction is ResolutionDirection.UP:
            return bsi >= self.threshold
        return bsi <= self.threshold

    def record_bsi(self, tick: int, bsi: float) -> None:
        if self.is_terminal:
            raise MarketClosed(self._state.value, tick)
        if self._last_tick is not None and tick <= self._last_tick:
            raise SimulationFault(f"Tick {tick} is not after tick {self._last_tick}")
        self._history.append(validate_bsi(bsi))
        self._last_tick = tick

    def evaluate(self, tick: int) -> MarketState:
        """Apply the per-tick transition rules and return the new state."""
        if self.is_terminal:
            return self._state
        if not self._history or self._last_tick != tick:
            raise SimulationFault(f"No BSI recorded for tick {tick}")

        bsi = self._history[-1]
        if self.qualifies(bsi):
            self._persistence_counter += 1
        else:
            self._persistence_counter = 0

        if self._persistence_counter >= self.persistence_ticks:
            self._state = MarketState.RESOLVED
            self._resolution_tick = tick
            logger.debug("Market resolved at tick %d (bsi=%.4f)", tick, bsi)
        elif tick >= self.duration_ticks:
            self._state = MarketState.EXPIRED
            logger.debug("Market expired at tick %d (bsi=%.4f)", tick, bsi)
        elif self.circuit_breaker is not None:
            previous = self._history[-2] if len(self._history) > 1 else self.initial_bsi
            tripped = previous is not None and abs(bsi - previous) > self.circuit_breaker
            if tripped and self._state is MarketState.ACTIVE:
                self._state = MarketState.PAUSED
                logger.debug("Circuit breaker tripped at tick %d", tick)
            elif not tripped and self._state is MarketState.PAUSED:
                self._state = MarketState.ACTIVE

        if self._state is MarketState.PAUSED:
            self._paused_ticks.append(tick)
        self._state_log.append((tick, self._state))
        return self._state

    def apply_trade(self, trade: Trade) -> None:
        """Apply ``trade`` atomically or raise without changing anything."""
        if self._state is not MarketState.ACTIVE:
            raise MarketClosed(self._state.value, trade.tick)
        if trade.size <= 0:
            raise MarketError(f"Trade size must be positive, got {trade.size}")

        participant = self.participant(trade.participant_id)
        position = participant.position
        price = trade.bsi if trade.side is Side.BUY else 1.0 - trade.bsi

        close_size = 0.0
        credit = 0.0
        if position is not None and position.side is not trade.side:
            close_size = min(trade.size, abs(position.size))
            close_value = trade.bsi if position.size > 0 else 1.0 - trade.bsi
            credit = close_size * close_value
        debit = (trade.size - close_size) * price

        available = participant.capital + credit
        if debit > available + _EPS:
            raise InsufficientCapital(participant.participant_id, debit, available)

        participant.position = _next_position(position, trade)
        participant.capital = max(0.0, available - debit)
        self._trades.append(trade)
        self._total_volume += abs(trade.size)

    def next_trade_id(self) -> int:
        return len(self._trades)

    def settle(self) -> Dict[int, Optional[Position]]:
        """Pay out open positions once the market is terminal.

        Returns the positions as they stood when the market closed.
        """
        if not self.is_terminal:
            raise SimulationFault(f"Cannot settle a {self._state.value} market")

        closing = {pid: p.position for pid, p in sorted(self._participants.items())}
        if self._settled:
            return closing

        resolved = self._state is MarketState.RESOLVED
        for participant in self._participants.values():
            position = participant.position
            if position is None:
                continue
            wins = position.size > 0 if resolved else position.size < 0
            if wins:
                participant.capital += abs(position.size)
            participant.position = None
        self._settled = True
        return closing

    def recompute_volume(self) -> float:
        return sum(abs(trade.size) for trade in self._trades)

    def statistics(self) -> MarketStatistics:
        return MarketStatistics(
            state=self._state,
            total_trades=len(self._trades),
            total_volume=self._total_volume,
            open_positions=sum(1 for p in self._participants.values() if p.position is not None),
            current_bsi=self.current_bsi,
            threshold=self.threshold,
            persistence_counter=self._persistence_counter,
            resolution_tick=self._resolution_tick,
        )

    def snapshot(self) -> Mapping[str, object]:
        return {
            "state": self._state.value,
            "bsi": self.current_bsi,
            "threshold": self.threshold,
            "persistence_counter": self._persistence_counter,
            "total_volume": self._total_volume,
            "num_trades": len(self._trades),
            "resolution_tick": self._resolution_tick,
        }


def _next_position(position: Optional[Position], trade: Trade) -> Optional[Position]:
    signed = trade.signed_size
    if position is None:
        return Position(entry_bsi=trade.bsi, size=signed, open_tick=trade.tick)

    new_size = position.size + signed
    if abs(new_size) <= _EPS:
        return None
    if position.side is trade.side:
        held = abs(position.size)
        entry = (held * position.entry_bsi + trade.size * trade.bsi) / (held + trade.size)
        return Position(entry_bsi=entry, size=new_size, open_tick=position.open_tick)
    if (new_size > 0) == (position.size > 0):
        return Position(entry_bsi=position.entry_bsi, size=new_size, open_tick=position.open_tick)
    return Position(entry_bsi=trade.bsi, size=new_size, open_tick=trade.tick)
