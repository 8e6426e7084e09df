"""
Run a batch of simulations per scenario and compare the outcomes.

Usage:
    python examples/compare_scenarios.py --runs 5 --days 10 --participants 200
    python examples/compare_scenarios.py --scenarios flash_crash sideways --output artifacts
"""

import argparse
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from preda_market_sim import (
    SimulationAnalytics,
    SimulationConfig,
    SimulationEngine,
    SimulationRuntimeConfig,
    all_scenarios,
)
from preda_market_sim.strategy_backtest import Strategy, StrategyKind, backtest_strategy


def parse_args():
    parser = argparse.ArgumentParser(description="Compare BSI market scenarios")
    parser.add_argument("--runs", type=int, default=3, help="Runs per scenario")
    parser.add_argument("--days", type=int, default=10, help="Simulated days per run")
    parser.add_argument("--participants", type=int, default=200)
    parser.add_argument("--seed", type=int, default=42, help="Base seed; run i uses seed + i")
    parser.add_argument("--scenarios", nargs="*", help="Scenario names (default: all presets)")
    parser.add_argument("--output", type=Path, help="Directory for CSV summaries")
    return parser.parse_args()


def main():
    args = parse_args()
    config = SimulationConfig(
        duration_days=args.days,
        num_participants=args.participants,
        seed=args.seed,
    )
    names = args.scenarios or [s.name for s in all_scenarios()]
    runtime = SimulationRuntimeConfig(show_progress=True)

    engine = SimulationEngine(config, names[0], runtime_config=runtime)
    scenarios = [name for name in names for _ in range(args.runs)]
    seeds = [args.seed + i for _ in names for i in range(args.runs)]
    results = engine.run_many(num_runs=len(scenarios), seeds=seeds, scenarios=scenarios)

    comparisons = SimulationAnalytics.compare_scenarios(SimulationAnalytics.group_by_scenario(results))
    frame = SimulationAnalytics.comparison_frame(comparisons)

    print("=" * 80)
    print("SCENARIO COMPARISON")
    print("=" * 80)
    print(frame[["scenario", "resolution_rate", "avg_final_bsi", "avg_volume", "avg_brier_score"]].to_string(index=False))

    print("\nStrategy backtest on the first run of each scenario:")
    strategies = [
        Strategy(StrategyKind.THRESHOLD_CROSSING, threshold=config.threshold),
        Strategy(StrategyKind.MOMENTUM, lookback_periods=24),
        Strategy(StrategyKind.MEAN_REVERSION, mean=0.5, deviation=0.1),
    ]
    seen = set()
    for result in results:
        if result.scenario_name in seen:
            continue
        seen.add(result.scenario_name)
        for strategy in strategies:
            backtest = backtest_strategy(strategy, result.bsi_history)
            print(
                f"  {result.scenario_name:<20} {backtest.strategy_name:<20} "
                f"return={backtest.total_return:+.4f} win_rate={backtest.win_rate:.1%} "
                f"max_dd={backtest.max_drawdown:.4f}"
            )

    if args.output:
        args.output.mkdir(parents=True, exist_ok=True)
        SimulationAnalytics.to_dataframe(results).to_csv(args.output / "runs.csv", index=False)
        frame.to_csv(args.output / "comparison.csv", index=False)
        print(f"\n[OK] Summaries saved to {args.output}/")


if __name__ == "__main__":
    main()
