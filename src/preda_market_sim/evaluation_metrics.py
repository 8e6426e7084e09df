"""
Evaluation metrics over batches of simulation results.
Consumes SimulationResult objects read-only.
"""

from dataclasses import asdict, dataclass
from typing import Dict, List, Mapping, Sequence

import numpy as np
import pandas as pd

from .simulation.engine import SimulationResult


@dataclass(frozen=True)
class PerformanceMetrics:
    total_simulations: int = 0
    successful_resolutions: int = 0
    resolution_rate: float = 0.0
    avg_final_bsi: float = 0.0
    avg_volume: float = 0.0
    avg_trades: float = 0.0
    avg_duration_days: float = 0.0
    bsi_volatility: float = 0.0
    avg_resolution_tick: float = float("nan")
    avg_brier_score: float = float("nan")


@dataclass(frozen=True)
class ScenarioComparison:
    scenario_name: str
    metrics: PerformanceMetrics


class SimulationAnalytics:
    """
    Aggregates many runs into summary metrics.
    Each run is treated independently; no run is modified.
    """

    @staticmethod
    def calculate_brier_score(bsi_history: Sequence[float], actual_outcome: int) -> float:
        """
        Brier score of the BSI read as a probability of resolution.
        Lower is better. Range: [0, 1]

        Args:
            bsi_history: BSI samples over the run
            actual_outcome: 1 if the market resolved, 0 if it expired
        """
        if len(bsi_history) == 0:
            return float("nan")
        series = np.asarray(bsi_history, dtype=float)
        return float(np.mean((series - actual_outcome) ** 2))

    @classmethod
    def analyze(cls, results: Sequence[SimulationResult]) -> PerformanceMetrics:
        """Summary statistics over ``results`` (empty input gives zeroed metrics)."""
        if not results:
            return PerformanceMetrics()

        final_bsi = np.array([r.final_bsi for r in results], dtype=float)
        resolved = [r for r in results if r.threshold_reached]
        resolution_ticks = [r.resolution_tick for r in resolved if r.resolution_tick is not None]
        brier = [
            cls.calculate_brier_score(r.bsi_history, 1 if r.threshold_reached else 0)
            for r in results
        ]

        return PerformanceMetrics(
            total_simulations=len(results),
            successful_resolutions=len(resolved),
            resolution_rate=len(resolved) / len(results),
            avg_final_bsi=float(final_bsi.mean()),
            avg_volume=float(np.mean([r.total_volume for r in results])),
            avg_trades=float(np.mean([r.total_trades for r in results])),
            avg_duration_days=float(np.mean([r.duration_days for r in results])),
            bsi_volatility=float(final_bsi.std()),
            avg_resolution_tick=float(np.mean(resolution_ticks)) if resolution_ticks else float("nan"),
            avg_brier_score=float(np.nanmean(brier)) if brier else float("nan"),
        )

    @classmethod
    def compare_scenarios(
        cls, results_by_scenario: Mapping[str, Sequence[SimulationResult]]
    ) -> List[ScenarioComparison]:
        """One comparison per scenario, ordered by scenario name."""
        return [
            ScenarioComparison(scenario_name=name, metrics=cls.analyze(results))
            for name, results in sorted(results_by_scenario.items())
        ]

    @staticmethod
    def group_by_scenario(results: Sequence[SimulationResult]) -> Dict[str, List[SimulationResult]]:
        grouped: Dict[str, List[SimulationResult]] = {}
        for result in results:
            grouped.setdefault(result.scenario_name, []).append(result)
        return grouped

    @staticmethod
    def to_dataframe(results: Sequence[SimulationResult]) -> pd.DataFrame:
        """One row per run with the scalar fields of each result."""
        rows = [
            {
                "run_id": r.run_id,
                "scenario": r.scenario_name,
                "seed": r.seed,
                "final_state": r.final_state.value,
                "final_bsi": r.final_bsi,
                "total_volume": r.total_volume,
                "total_trades": r.total_trades,
                "threshold_reached": r.threshold_reached,
                "resolution_tick": r.resolution_tick,
                "ticks_executed": r.ticks_executed,
                "duration_days": r.duration_days,
                "rejected_trades": r.rejected_trades,
            }
            for r in results
        ]
        return pd.DataFrame(rows)

    @staticmethod
    def comparison_frame(comparisons: Sequence[ScenarioComparison]) -> pd.DataFrame:
        return pd.DataFrame(
            [{"scenario": c.scenario_name, **asdict(c.metrics)} for c in comparisons]
        )
