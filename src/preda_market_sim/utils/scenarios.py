"""Named scenario presets and loaders for custom scenario files.

A ``Scenario`` is a plain parameter bundle expressed in day-scale units.
``Scenario.to_parameters`` converts it to the tick-scale
``ScenarioParameters`` the oracle and market consume.
"""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

import yaml

from ..errors import ConfigurationError
from ..oracle.process import ResolutionDirection, ScenarioParameters, ShockEvent, ShockKind
from ..simulation.interfaces import ticks_per_day
from .config import SimulationConfig


@dataclass(frozen=True)
class ScheduledShock:
    day: float
    magnitude: float
    kind: ShockKind = ShockKind.NONE


@dataclass(frozen=True)
class Scenario:
    name: str
    description: str = ""
    drift_target: Optional[float] = 0.5  # None -> the run's threshold
    drift_per_day: float = 0.0
    volatility_scale: float = 1.0
    reversion_per_day: float = 0.5
    shocks: Tuple[ScheduledShock, ...] = field(default_factory=tuple)
    recommended_participants: int = 500
    resolution_direction: ResolutionDirection = ResolutionDirection.UP
    circuit_breaker: Optional[float] = None
    random_shock_probability: float = 0.0
    random_shock_magnitude: float = 0.0

    def to_parameters(self, config: SimulationConfig) -> ScenarioParameters:
        """Scale the bundle to ticks of ``config.update_frequency_secs``."""
        per_day = ticks_per_day(config.update_frequency_secs)
        target = config.threshold if self.drift_target is None else self.drift_target
        return ScenarioParameters(
            name=self.name,
            initial_bsi=config.initial_bsi,
            drift_target=target,
            drift=self.drift_per_day / per_day,
            volatility=min(1.0, config.volatility * self.volatility_scale / math.sqrt(per_day)),
            reversion_strength=min(1.0, self.reversion_per_day / per_day),
            shocks=tuple(
                ShockEvent(tick=int(round(s.day * per_day)), magnitude=s.magnitude, kind=s.kind)
                for s in self.shocks
            ),
            recommended_participants=self.recommended_participants,
            resolution_direction=self.resolution_direction,
            circuit_breaker=self.circuit_breaker,
            random_shock_probability=self.random_shock_probability,
            random_shock_magnitude=self.random_shock_magnitude,
        )


SCENARIOS: Dict[str, Scenario] = {
    "bullish_trend": Scenario(
        name="bullish_trend",
        description="Steady upward trend with increasing BSI",
        drift_target=0.8,
        drift_per_day=0.02,
        volatility_scale=0.5,
        recommended_participants=500,
    ),
    "bearish_trend": Scenario(
        name="bearish_trend",
        description="Steady downward trend with decreasing BSI",
        drift_target=0.2,
        drift_per_day=-0.02,
        volatility_scale=0.5,
        recommended_participants=500,
    ),
    "sideways": Scenario(
        name="sideways",
        description="High volatility with no clear direction",
        volatility_scale=1.25,
        recommended_participants=1000,
    ),
    "sentiment_reversal": Scenario(
        name="sentiment_reversal",
        description="Rapid shift from bearish to bullish sentiment",
        drift_per_day=-0.03,
        volatility_scale=1.5,
        reversion_per_day=0.2,
        shocks=(ScheduledShock(day=10, magnitude=0.15, kind=ShockKind.SENTIMENT_REVERSAL),),
        recommended_participants=750,
    ),
    "consensus_formation": Scenario(
        name="consensus_formation",
        description="Gradual convergence toward threshold",
        drift_target=None,
        volatility_scale=0.75,
        reversion_per_day=1.0,
        recommended_participants=300,
    ),
    "high_volatility": Scenario(
        name="high_volatility",
        description="Extreme swings and rapid BSI changes",
        volatility_scale=2.5,
        random_shock_probability=0.002,
        random_shock_magnitude=0.2,
        recommended_participants=1500,
    ),
    "low_activity": Scenario(
        name="low_activity",
        description="Minimal trading with slow BSI drift",
        drift_per_day=0.005,
        volatility_scale=0.25,
        reversion_per_day=0.1,
        recommended_participants=100,
    ),
    "flash_crash": Scenario(
        name="flash_crash",
        description="Sudden sharp drop followed by recovery",
        drift_target=0.6,
        volatility_scale=2.0,
        shocks=(ScheduledShock(day=7, magnitude=-0.3, kind=ShockKind.FLASH_CRASH),),
        circuit_breaker=0.2,
        recommended_participants=800,
    ),
    "parabolic_rise": Scenario(
        name="parabolic_rise",
        description="Accelerating upward movement",
        drift_target=0.95,
        drift_per_day=0.03,
        reversion_per_day=0.3,
        recommended_participants=600,
    ),
}


def all_scenarios() -> List[Scenario]:
    return list(SCENARIOS.values())


def get_scenario(name: str) -> Scenario:
    key = name.strip().lower().replace("-", "_").replace(" ", "_")
    try:
        return SCENARIOS[key]
    except KeyError:
        raise ConfigurationError(
            "scenario", f"unknown scenario {name!r}; expected one of {sorted(SCENARIOS)}"
        ) from None


def custom_scenario(name: str = "custom", **params: Any) -> Scenario:
    """Build a user-defined bundle with the same shape as the presets."""
    return scenario_from_dict({"name": name, **params})


def scenario_from_dict(data: Mapping[str, Any]) -> Scenario:
    known = {f.name for f in fields(Scenario)}
    unknown = set(data) - known
    if unknown:
        raise ConfigurationError("scenario", f"unknown keys {sorted(unknown)}")
    if "name" not in data:
        raise ConfigurationError("scenario", "missing 'name'")

    values = dict(data)
    shocks = []
    for raw in values.get("shocks", ()) or ():
        if isinstance(raw, ScheduledShock):
            shocks.append(raw)
            continue
        try:
            shocks.append(
                ScheduledShock(
                    day=float(raw["day"]),
                    magnitude=float(raw["magnitude"]),
                    kind=ShockKind(raw.get("kind", ShockKind.NONE.value)),
                )
            )
        except (KeyError, ValueError, TypeError) as exc:
            raise ConfigurationError("scenario.shocks", f"invalid shock {raw!r}: {exc}") from None
    values["shocks"] = tuple(shocks)

    if "resolution_direction" in values:
        try:
            values["resolution_direction"] = ResolutionDirection(values["resolution_direction"])
        except ValueError:
            raise ConfigurationError(
                "scenario.resolution_direction", f"expected 'up' or 'down', got {values['resolution_direction']!r}"
            ) from None

    scenario = Scenario(**values)
    _validate_scenario(scenario)
    return scenario


def load_scenarios(path: str | Path) -> List[Scenario]:
    """Load a YAML or JSON file holding a list of scenario entries."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Scenario file not found: {path}")

    with open(path, "r") as f:
        if path.suffix.lower() in {".yaml", ".yml"}:
            data = yaml.safe_load(f)
        else:
            data = json.load(f)

    if not isinstance(data, list):
        raise ConfigurationError("scenario", "scenario file must contain a list of entries")
    return [scenario_from_dict(entry) for entry in data]


def _validate_scenario(scenario: Scenario) -> None:
    if scenario.drift_target is not None and not (0.0 <= scenario.drift_target <= 1.0):
        raise ConfigurationError("scenario.drift_target", f"must be in [0, 1], got {scenario.drift_target}")
    if scenario.volatility_scale < 0:
        raise ConfigurationError("scenario.volatility_scale", "must be >= 0")
    if scenario.reversion_per_day < 0:
        raise ConfigurationError("scenario.reversion_per_day", "must be >= 0")
    if scenario.recommended_participants < 1:
        raise ConfigurationError("scenario.recommended_participants", "must be >= 1")
    if scenario.circuit_breaker is not None and scenario.circuit_breaker <= 0:
        raise ConfigurationError("scenario.circuit_breaker", "must be positive when set")
    if not (0.0 <= scenario.random_shock_probability <= 1.0):
        raise ConfigurationError("scenario.random_shock_probability", "must be in [0, 1]")
    for shock in scenario.shocks:
        if shock.day < 0:
            raise ConfigurationError("scenario.shocks", f"shock day must be >= 0, got {shock.day}")
