"""Data logging and tracking for simulation runs.

Records, per run:
- market state per tick (BSI, lifecycle state, persistence counter, volume)
- individual trades
- rejected trade intents
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import pandas as pd

from .interfaces import Trade


@dataclass
class SimulationLogger:
    """Logs simulation data to structured formats.

    Tracks:
    - market_df: market state per tick
    - trade_df: individual trades
    - rejection_df: trade intents the market refused
    """

    log_dir: Path = field(default_factory=lambda: Path("simulation_logs"))
    run_id: str = "run_001"

    def __post_init__(self):
        self.market_records: List[Dict[str, Any]] = []
        self.trade_records: List[Dict[str, Any]] = []
        self.rejection_records: List[Dict[str, Any]] = []

    def log_market_state(
        self,
        tick: int,
        bsi: float,
        market_snapshot: Mapping[str, object],
        tick_volume: float = 0.0,
    ) -> None:
        """Log market state for a tick.

        Args:
            tick: Current tick
            bsi: BSI recorded this tick
            market_snapshot: Snapshot from ``Market.snapshot()``
            tick_volume: Volume traded during this tick
        """
        record = {
            "tick": tick,
            "bsi": bsi,
            "tick_volume": tick_volume,
        }
        for key, value in market_snapshot.items():
            if key not in record and (isinstance(value, (int, float, str, bool)) or value is None):
                record[key] = value
        self.market_records.append(record)

    def log_trade(self, trade: Trade) -> None:
        self.trade_records.append(
            {
                "tick": trade.tick,
                "trade_id": trade.trade_id,
                "participant_id": trade.participant_id,
                "side": trade.side.value,
                "size": trade.size,
                "bsi": trade.bsi,
            }
        )

    def log_rejection(self, tick: int, participant_id: int, reason: str) -> None:
        self.rejection_records.append(
            {"tick": tick, "participant_id": participant_id, "reason": reason}
        )

    def to_frames(self) -> Dict[str, pd.DataFrame]:
        """Return the logged records as DataFrames keyed by data type."""
        return {
            "market": pd.DataFrame.from_records(self.market_records),
            "trades": pd.DataFrame.from_records(self.trade_records),
            "rejections": pd.DataFrame.from_records(self.rejection_records),
        }

    def save_to_csv(self) -> Dict[str, Path]:
        """Save all logged data to CSV files.

        Returns:
            Dictionary mapping data type to file path
        """
        self.log_dir.mkdir(parents=True, exist_ok=True)
        saved_files = {}
        for name, frame in self.to_frames().items():
            if frame.empty:
                continue
            path = self.log_dir / f"{self.run_id}_{name}.csv"
            frame.to_csv(path, index=False)
            saved_files[name] = path
        return saved_files

    def save_to_json(self) -> Dict[str, Path]:
        """Save all logged data to JSON files.

        Returns:
            Dictionary mapping data type to file path
        """
        self.log_dir.mkdir(parents=True, exist_ok=True)
        saved_files = {}
        for name, records in (
            ("market", self.market_records),
            ("trades", self.trade_records),
            ("rejections", self.rejection_records),
        ):
            if not records:
                continue
            path = self.log_dir / f"{self.run_id}_{name}.json"
            with open(path, 'w', encoding='utf-8') as f:
                json.dump(records, f, indent=2, default=str)
            saved_files[name] = path
        return saved_files

    def get_summary_stats(self) -> Dict[str, Any]:
        """Get summary statistics for the simulation run."""
        stats: Dict[str, Any] = {
            "run_id": self.run_id,
            "num_ticks": len(self.market_records),
            "num_trades": len(self.trade_records),
            "num_rejections": len(self.rejection_records),
        }

        if self.market_records:
            series = [r["bsi"] for r in self.market_records]
            stats["initial_bsi"] = series[0]
            stats["final_bsi"] = series[-1]
            stats["mean_bsi"] = sum(series) / len(series)
            stats["min_bsi"] = min(series)
            stats["max_bsi"] = max(series)
            stats["bsi_change"] = series[-1] - series[0]

            volumes = [r.get("tick_volume", 0.0) for r in self.market_records]
            stats["total_volume"] = sum(volumes)
            stats["mean_volume_per_tick"] = sum(volumes) / len(volumes)

        return stats


def create_logger(run_id: str, log_dir: Optional[Path] = None) -> SimulationLogger:
    """Create a simulation logger.

    Args:
        run_id: Unique identifier for this run
        log_dir: Directory for log files (defaults to ./simulation_logs)

    Returns:
        Configured SimulationLogger instance
    """
    if log_dir is None:
        log_dir = Path("simulation_logs")

    return SimulationLogger(log_dir=log_dir, run_id=run_id)
