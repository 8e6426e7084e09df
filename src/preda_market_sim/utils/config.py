"""Configuration management for BSI market simulation.

``SimulationConfig`` holds the validated run parameters. It can be built
directly or read from a ``config.env`` file / environment variables.
"""

import numbers
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Mapping, Optional

from ..agents.participants import ParticipantBehavior
from ..agents.adapters import DEFAULT_CAPITAL
from ..errors import ConfigurationError
from ..simulation.interfaces import days_to_ticks, hours_to_ticks

ENV_PREFIX = "PREDA_"


@dataclass(frozen=True)
class SimulationConfig:
    """Validated parameters for one simulation run."""

    duration_days: int = 30
    num_participants: int = 100
    initial_bsi: float = 0.5
    volatility: float = 0.1
    threshold: float = 0.75
    persistence_hours: int = 24
    update_frequency_secs: int = 300
    seed: Optional[int] = None
    initial_capital: float = DEFAULT_CAPITAL
    behavior_mix: Optional[Mapping[ParticipantBehavior, float]] = field(default=None, hash=False)

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Raise ``ConfigurationError`` for the first out-of-range field."""
        _check_int_range("duration_days", self.duration_days, 1, 365)
        _check_int_range("num_participants", self.num_participants, 1, 10000)
        _check_unit_interval("initial_bsi", self.initial_bsi)
        _check_unit_interval("volatility", self.volatility)
        _check_unit_interval("threshold", self.threshold)
        _check_int_range("persistence_hours", self.persistence_hours, 1, 168)
        _check_int_range("update_frequency_secs", self.update_frequency_secs, 1, 3600)

        if self.seed is not None and (not _is_int(self.seed) or self.seed < 0):
            raise ConfigurationError("seed", f"must be a non-negative integer, got {self.seed!r}")
        if not _is_number(self.initial_capital) or self.initial_capital <= 0:
            raise ConfigurationError("initial_capital", f"must be positive, got {self.initial_capital!r}")

        if self.behavior_mix is not None:
            for behavior, weight in self.behavior_mix.items():
                if not isinstance(behavior, ParticipantBehavior):
                    raise ConfigurationError("behavior_mix", f"unknown behavior {behavior!r}")
                if not _is_number(weight) or weight < 0:
                    raise ConfigurationError("behavior_mix", f"weight for {behavior.value} must be >= 0")
            if sum(self.behavior_mix.values()) <= 0:
                raise ConfigurationError("behavior_mix", "weights must not all be zero")

    @property
    def duration_ticks(self) -> int:
        """Index of the last tick of the run (the run spans ticks 0..duration_ticks)."""
        return days_to_ticks(self.duration_days, self.update_frequency_secs)

    @property
    def persistence_ticks(self) -> int:
        return hours_to_ticks(self.persistence_hours, self.update_frequency_secs)

    def with_seed(self, seed: Optional[int]) -> "SimulationConfig":
        return replace(self, seed=seed)

    @classmethod
    def from_env(cls, config_file: Optional[str] = None, **overrides) -> "SimulationConfig":
        """Build a config from ``config.env`` and ``PREDA_*`` environment variables.

        Args:
            config_file: Path to .env file (default: config.env in the working directory)
            **overrides: Field values that take precedence over the environment
        """
        _load_env(config_file)

        values = {
            "duration_days": _env_int("DURATION_DAYS", 30),
            "num_participants": _env_int("NUM_PARTICIPANTS", 100),
            "initial_bsi": _env_float("INITIAL_BSI", 0.5),
            "volatility": _env_float("VOLATILITY", 0.1),
            "threshold": _env_float("THRESHOLD", 0.75),
            "persistence_hours": _env_int("PERSISTENCE_HOURS", 24),
            "update_frequency_secs": _env_int("UPDATE_FREQUENCY_SECS", 300),
            "seed": _env_int("SEED", None),
            "initial_capital": _env_float("INITIAL_CAPITAL", DEFAULT_CAPITAL),
        }
        values.update(overrides)
        return cls(**values)


def _load_env(config_file: Optional[str]) -> None:
    """Load KEY=VALUE lines into ``os.environ`` without overriding existing vars."""
    config_path = Path(config_file) if config_file is not None else Path.cwd() / "config.env"
    if not config_path.exists():
        return

    with open(config_path) as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith('#') and '=' in line:
                key, value = line.split('=', 1)
                key = key.strip()
                value = value.strip()
                if key not in os.environ:
                    os.environ[key] = value


def _env_raw(name: str) -> Optional[str]:
    value = os.getenv(ENV_PREFIX + name)
    if value is None or value.strip() == "":
        return None
    return value.strip()


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    raw = _env_raw(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(name.lower(), f"expected an integer, got {raw!r}") from None


def _env_float(name: str, default: float) -> float:
    raw = _env_raw(name)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(name.lower(), f"expected a number, got {raw!r}") from None


def _is_int(value: object) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


def _is_number(value: object) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def _check_int_range(name: str, value: object, low: int, high: int) -> None:
    if not _is_int(value):
        raise ConfigurationError(name, f"must be an integer, got {value!r}")
    if not (low <= value <= high):
        raise ConfigurationError(name, f"must be in [{low}, {high}], got {value}")


def _check_unit_interval(name: str, value: object) -> None:
    if not _is_number(value) or not (0.0 <= value <= 1.0):
        raise ConfigurationError(name, f"must be in [0.0, 1.0], got {value!r}")
