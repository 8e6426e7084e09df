"""Exception taxonomy shared by the simulator modules."""

from __future__ import annotations


class SimulatorError(Exception):
    """Base class for every error raised by the simulator."""


class ConfigurationError(SimulatorError, ValueError):
    """An input parameter is outside its documented range.

    Raised before a run starts, never mid-run.
    """

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"Invalid configuration for '{field}': {message}")


class MarketError(SimulatorError):
    """A trade or update was refused by the market."""


class MarketClosed(MarketError):
    """Trade attempted against a market that is not Active."""

    def __init__(self, state: str, tick: int | None = None):
        self.state = state
        self.tick = tick
        where = f" at tick {tick}" if tick is not None else ""
        super().__init__(f"Market is {state}{where}; no trades accepted")


class InsufficientCapital(MarketError):
    """The participant cannot fund the opening leg of a trade."""

    def __init__(self, participant_id: int, required: float, available: float):
        self.participant_id = participant_id
        self.required = required
        self.available = available
        super().__init__(
            f"Participant {participant_id} needs {required:.4f} but holds {available:.4f}"
        )


class SimulationFault(SimulatorError):
    """Internal invariant violation. Always fatal for the run."""
