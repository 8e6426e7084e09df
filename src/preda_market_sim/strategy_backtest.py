"""Trading strategy signals and post-hoc backtest metrics over a BSI series."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence

import numpy as np


class StrategyKind(str, Enum):
    THRESHOLD_CROSSING = "threshold_crossing"
    MOMENTUM = "momentum"
    MEAN_REVERSION = "mean_reversion"
    CONTRARIAN = "contrarian"


@dataclass(frozen=True)
class Strategy:
    """A signal rule. ``evaluate`` returns a position in [-1, 1]."""

    kind: StrategyKind
    threshold: float = 0.5
    lookback_periods: int = 10
    mean: float = 0.5
    deviation: float = 0.1
    label: Optional[str] = None

    @property
    def name(self) -> str:
        return self.label or self.kind.value.replace("_", " ").title()

    def evaluate(self, current_bsi: float, history: Sequence[float]) -> float:
        if self.kind is StrategyKind.THRESHOLD_CROSSING:
            return 1.0 if current_bsi < self.threshold else -1.0
        if self.kind is StrategyKind.MOMENTUM:
            if self.lookback_periods < 1 or len(history) < self.lookback_periods:
                return 0.0
            momentum = current_bsi - history[-self.lookback_periods]
            return float(np.clip(momentum, -1.0, 1.0))
        if self.kind is StrategyKind.MEAN_REVERSION:
            distance = current_bsi - self.mean
            if abs(distance) > self.deviation:
                return -float(np.sign(distance))
            return 0.0
        if self.kind is StrategyKind.CONTRARIAN:
            return -1.0 if current_bsi > self.threshold else 1.0
        raise ValueError(f"Unknown strategy kind {self.kind!r}")


@dataclass
class StrategyBacktest:
    strategy_name: str
    total_return: float = 0.0
    num_trades: int = 0
    win_rate: float = 0.0
    sharpe_ratio: float = 0.0
    max_drawdown: float = 0.0
    returns: List[float] = field(default_factory=list, repr=False)

    def calculate_metrics(self, returns: Sequence[float]) -> None:
        """Fill in the metrics from a per-trade return series."""
        self.returns = list(returns)
        if not self.returns:
            return

        series = np.asarray(self.returns, dtype=float)
        self.total_return = float(series.sum())
        self.num_trades = len(series)
        self.win_rate = float(np.count_nonzero(series > 0) / len(series))

        std = series.std()
        self.sharpe_ratio = float(series.mean() / std) if std > 0 else 0.0

        # Drawdown of the cumulative curve, measured from a starting equity of 0
        cumulative = np.concatenate(([0.0], np.cumsum(series)))
        peaks = np.maximum.accumulate(cumulative)
        self.max_drawdown = float(np.max(peaks - cumulative))


def backtest_strategy(strategy: Strategy, bsi_history: Sequence[float]) -> StrategyBacktest:
    """Replay ``strategy`` over a BSI series.

    The signal formed at sample ``t - 1`` is held over the move to sample
    ``t``; flat periods are not counted as trades.
    """
    result = StrategyBacktest(strategy_name=strategy.name)
    returns = []
    for t in range(1, len(bsi_history)):
        signal = strategy.evaluate(bsi_history[t - 1], bsi_history[: t - 1])
        if signal == 0.0:
            continue
        returns.append(signal * (bsi_history[t] - bsi_history[t - 1]))
    result.calculate_metrics(returns)
    return result
