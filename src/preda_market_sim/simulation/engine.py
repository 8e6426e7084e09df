"""High-level simulation orchestrator."""

from __future__ import annotations

import concurrent.futures
import logging
import math
from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
from tqdm import tqdm

from ..agents.adapters import create_participants
from ..agents.participants import HISTORY_WINDOW, Participant
from ..errors import ConfigurationError, InsufficientCapital, MarketClosed, SimulationFault
from ..market.state_machine import Market, MarketState, MarketStatistics
from ..oracle.process import OracleProcess, ScenarioParameters
from ..utils.config import SimulationConfig
from ..utils.scenarios import Scenario, get_scenario
from .interfaces import SECONDS_PER_DAY, Evaluator, Position, Trade
from .logging import SimulationLogger, create_logger

logger = logging.getLogger(__name__)

ScenarioLike = Union[str, Scenario, ScenarioParameters]


@dataclass(slots=True)
class SimulationRuntimeConfig:
    """Controls runtime behavior for the simulator (not the simulated market)."""

    log_dir: Path = Path("artifacts")
    run_name: str = "default"
    log_every: int = 1
    enable_logging: bool = False
    save_logs_as_csv: bool = False
    save_logs_as_json: bool = False
    show_progress: bool = False
    max_workers: Optional[int] = None


@dataclass(frozen=True)
class SimulationResult:
    """Immutable output of one run, handed to analytics as read-only data."""

    run_id: int
    scenario_name: str
    seed: int
    final_bsi: float
    total_volume: float
    total_trades: int
    threshold_reached: bool
    final_state: MarketState
    resolution_tick: Optional[int]
    ticks_executed: int
    duration_days: float
    bsi_history: Tuple[float, ...]
    trade_log: Tuple[Trade, ...]
    final_positions: Mapping[int, Optional[Position]]
    final_capital: Mapping[int, float]
    paused_ticks: Tuple[int, ...] = ()
    rejected_trades: int = 0
    statistics: Optional[MarketStatistics] = None
    summary_stats: Mapping[str, object] = field(default_factory=dict)
    evaluator_metrics: Mapping[str, Mapping[str, float]] = field(default_factory=dict)
    log_files: Mapping[str, Path] = field(default_factory=dict)


class SimulationEngine:
    """Coordinates the oracle, the market and the participants for a run."""

    def __init__(
        self,
        config: SimulationConfig,
        scenario: ScenarioLike = "bullish_trend",
        *,
        runtime_config: Optional[SimulationRuntimeConfig] = None,
        evaluator_factories: Sequence[Callable[[], Evaluator]] = (),
    ) -> None:
        if not isinstance(config, SimulationConfig):
            raise ConfigurationError("config", f"expected SimulationConfig, got {type(config).__name__}")
        config.validate()
        self._config = config
        self._scenario = scenario
        self._parameters = resolve_parameters(config, scenario)
        self._runtime = runtime_config or SimulationRuntimeConfig()
        self._evaluator_factories = list(evaluator_factories)

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def parameters(self) -> ScenarioParameters:
        return self._parameters

    def with_scenario(self, scenario: ScenarioLike) -> "SimulationEngine":
        return SimulationEngine(
            self._config,
            scenario,
            runtime_config=self._runtime,
            evaluator_factories=self._evaluator_factories,
        )

    def run_many(
        self,
        *,
        num_runs: int,
        seeds: Optional[Sequence[Optional[int]]] = None,
        scenarios: Optional[Sequence[ScenarioLike]] = None,
    ) -> List[SimulationResult]:
        """Run independent simulations concurrently, results in submission order.

        Each run owns its RNG, market and participants, so runs share no
        mutable state. A fault in one run is re-raised after the batch
        finishes and never affects the others.
        """
        if num_runs < 1:
            raise ConfigurationError("num_runs", f"must be >= 1, got {num_runs}")
        if seeds is None:
            base = self._config.seed
            seeds = [base + i if base is not None else None for i in range(num_runs)]
        seeds = list(seeds)
        if len(seeds) != num_runs:
            raise ValueError("Length of seeds iterable must match num_runs.")

        engines = [self] * num_runs
        if scenarios is not None:
            scenarios = list(scenarios)
            if len(scenarios) != num_runs:
                raise ValueError("Length of scenarios must match num_runs.")
            engines = [self.with_scenario(s) for s in scenarios]

        results: List[Optional[SimulationResult]] = [None] * num_runs
        errors: List[Tuple[int, BaseException]] = []
        with concurrent.futures.ThreadPoolExecutor(max_workers=self._runtime.max_workers) as executor:
            future_to_index = {
                executor.submit(engine.run_once, run_id=index + 1, seed=seed): index
                for index, (engine, seed) in enumerate(zip(engines, seeds))
            }
            with tqdm(
                total=num_runs, desc="Runs", unit="run", disable=not self._runtime.show_progress
            ) as pbar:
                for future in concurrent.futures.as_completed(future_to_index):
                    index = future_to_index[future]
                    try:
                        results[index] = future.result()
                    except Exception as exc:
                        logger.error("Run %d failed: %s", index + 1, exc)
                        errors.append((index, exc))
                    pbar.update(1)

        if errors:
            errors.sort(key=lambda item: item[0])
            raise errors[0][1]
        return [result for result in results if result is not None]

    def run_once(self, *, run_id: int = 1, seed: Optional[int] = None) -> SimulationResult:
        """Execute a single simulation loop."""
        config = self._config
        params = self._parameters
        if seed is None:
            seed = config.seed

        seed_seq = np.random.SeedSequence(seed)
        run_seed = int(seed_seq.entropy)
        oracle_seq, roster_seq = seed_seq.spawn(2)

        participants = create_participants(
            config.num_participants,
            roster_seq.spawn(config.num_participants),
            initial_capital=config.initial_capital,
            behavior_mix=config.behavior_mix,
        )
        oracle = OracleProcess(params, np.random.default_rng(oracle_seq))
        market = Market(
            threshold=config.threshold,
            persistence_ticks=config.persistence_ticks,
            duration_ticks=config.duration_ticks,
            direction=params.resolution_direction,
            circuit_breaker=params.circuit_breaker,
            initial_bsi=oracle.current_bsi,
            participants=participants,
        )
        ordered = market.iter_participants()
        evaluators = [factory() for factory in self._evaluator_factories]

        run_logger: Optional[SimulationLogger] = None
        if self._runtime.enable_logging:
            run_logger = create_logger(f"{self._runtime.run_name}_run{run_id}", self._runtime.log_dir)

        logger.info(
            "Run %d: scenario=%s seed=%d participants=%d ticks=%d",
            run_id, params.name, run_seed, len(ordered), config.duration_ticks + 1,
        )

        rejected = 0
        with tqdm(
            total=config.duration_ticks + 1,
            desc=f"Run {run_id}",
            unit="tick",
            leave=False,
            disable=not self._runtime.show_progress,
        ) as pbar:
            for tick in range(config.duration_ticks + 1):
                bsi = oracle.next()
                market.record_bsi(tick, bsi)
                state = market.evaluate(tick)

                tick_volume = 0.0
                if state is MarketState.ACTIVE:
                    tick_volume, tick_rejected = self._trade_tick(market, ordered, tick, bsi, run_logger)
                    rejected += tick_rejected

                snapshot = market.snapshot()
                if run_logger and tick % self._runtime.log_every == 0:
                    run_logger.log_market_state(tick, bsi, snapshot, tick_volume)
                for evaluator in evaluators:
                    evaluator.on_tick(
                        tick=tick, bsi=bsi, market_state=state.value, market_snapshot=snapshot
                    )
                pbar.update(1)

                if market.is_terminal:
                    break

        if not market.is_terminal:
            raise SimulationFault(f"Run {run_id} exhausted its duration without terminating")

        volume_check = market.recompute_volume()
        if not math.isclose(volume_check, market.total_volume, rel_tol=1e-9, abs_tol=1e-9):
            raise SimulationFault(
                f"Total volume {market.total_volume} disagrees with trade log {volume_check}"
            )

        stats = market.statistics()
        closing_positions = market.settle()
        history = market.history

        metrics: Dict[str, Mapping[str, float]] = {}
        for evaluator in evaluators:
            metrics[evaluator.__class__.__name__] = evaluator.finalize()

        summary: Mapping[str, object] = {}
        log_files: Dict[str, Path] = {}
        if run_logger:
            if self._runtime.save_logs_as_csv:
                log_files.update({f"{name}_csv": path for name, path in run_logger.save_to_csv().items()})
            if self._runtime.save_logs_as_json:
                log_files.update({f"{name}_json": path for name, path in run_logger.save_to_json().items()})
            summary = run_logger.get_summary_stats()

        logger.info(
            "Run %d finished: state=%s ticks=%d final_bsi=%.4f volume=%.2f rejected=%d",
            run_id, market.state.value, len(history), history[-1], market.total_volume, rejected,
        )

        return SimulationResult(
            run_id=run_id,
            scenario_name=params.name,
            seed=run_seed,
            final_bsi=history[-1],
            total_volume=market.total_volume,
            total_trades=stats.total_trades,
            threshold_reached=market.state is MarketState.RESOLVED,
            final_state=market.state,
            resolution_tick=market.resolution_tick,
            ticks_executed=len(history),
            duration_days=(len(history) - 1) * config.update_frequency_secs / SECONDS_PER_DAY,
            bsi_history=history,
            trade_log=market.get_trades(),
            final_positions=MappingProxyType(dict(closing_positions)),
            final_capital=MappingProxyType({p.participant_id: p.capital for p in ordered}),
            paused_ticks=market.paused_ticks,
            rejected_trades=rejected,
            statistics=stats,
            summary_stats=MappingProxyType(dict(summary)),
            evaluator_metrics=MappingProxyType(metrics),
            log_files=MappingProxyType(log_files),
        )

    def _trade_tick(
        self,
        market: Market,
        participants: Sequence[Participant],
        tick: int,
        bsi: float,
        run_logger: Optional[SimulationLogger],
    ) -> Tuple[float, int]:
        """Collect every decision, then apply trades in ascending participant id."""
        window = market.recent_history(HISTORY_WINDOW)
        threshold = self._config.threshold
        direction = self._parameters.resolution_direction
        intents = [(p.participant_id, p.decide(bsi, window, threshold, direction)) for p in participants]

        volume = 0.0
        rejected = 0
        for participant_id, intent in intents:
            if intent is None:
                continue
            trade = Trade(
                trade_id=market.next_trade_id(),
                participant_id=participant_id,
                tick=tick,
                side=intent.side,
                size=intent.size,
                bsi=bsi,
            )
            try:
                market.apply_trade(trade)
            except (MarketClosed, InsufficientCapital) as exc:
                rejected += 1
                logger.debug("Tick %d: rejected trade for participant %d: %s", tick, participant_id, exc)
                if run_logger:
                    run_logger.log_rejection(tick, participant_id, type(exc).__name__)
                continue
            volume += trade.size
            if run_logger:
                run_logger.log_trade(trade)
        return volume, rejected


def resolve_parameters(config: SimulationConfig, scenario: ScenarioLike) -> ScenarioParameters:
    """Turn a preset name, a ``Scenario`` or raw parameters into tick-scale parameters."""
    if isinstance(scenario, str):
        return get_scenario(scenario).to_parameters(config)
    if isinstance(scenario, Scenario):
        return scenario.to_parameters(config)
    if isinstance(scenario, ScenarioParameters):
        _validate_parameters(scenario)
        # Raw bundles are already tick-scale; only the starting BSI comes from the config
        return replace(scenario, initial_bsi=config.initial_bsi)
    raise ConfigurationError("scenario", f"unsupported scenario type {type(scenario).__name__}")


def _validate_parameters(params: ScenarioParameters) -> None:
    for name in ("initial_bsi", "drift_target", "volatility", "reversion_strength", "random_shock_probability"):
        value = getattr(params, name)
        if not (0.0 <= value <= 1.0):
            raise ConfigurationError(f"scenario.{name}", f"must be in [0.0, 1.0], got {value!r}")
    if params.circuit_breaker is not None and params.circuit_breaker <= 0:
        raise ConfigurationError("scenario.circuit_breaker", "must be positive when set")
    for shock in params.shocks:
        if shock.tick < 0:
            raise ConfigurationError("scenario.shocks", f"shock tick must be >= 0, got {shock.tick}")


def run_simulation(
    config: SimulationConfig,
    scenario: ScenarioLike = "bullish_trend",
    *,
    seed: Optional[int] = None,
) -> SimulationResult:
    """Run one simulation with default runtime settings."""
    return SimulationEngine(config, scenario).run_once(seed=seed)
