"""Tests for scenario presets, scaling and file loading."""

import json
import math

import pytest

from preda_market_sim.errors import ConfigurationError
from preda_market_sim.oracle import ResolutionDirection, ShockKind
from preda_market_sim.utils import (
    SCENARIOS,
    SimulationConfig,
    all_scenarios,
    custom_scenario,
    get_scenario,
    load_scenarios,
)


def test_catalog_has_all_presets():
    assert set(SCENARIOS) == {
        "bullish_trend",
        "bearish_trend",
        "sideways",
        "sentiment_reversal",
        "consensus_formation",
        "high_volatility",
        "low_activity",
        "flash_crash",
        "parabolic_rise",
    }
    assert [s.name for s in all_scenarios()] == list(SCENARIOS)


def test_lookup_normalizes_names():
    assert get_scenario("Flash-Crash") is SCENARIOS["flash_crash"]
    assert get_scenario(" bullish trend ") is SCENARIOS["bullish_trend"]
    with pytest.raises(ConfigurationError):
        get_scenario("moon")


def test_to_parameters_scales_to_ticks():
    config = SimulationConfig(volatility=0.1, update_frequency_secs=300)
    params = get_scenario("bullish_trend").to_parameters(config)

    assert params.name == "bullish_trend"
    assert params.initial_bsi == config.initial_bsi
    assert params.drift_target == 0.8
    assert params.drift == pytest.approx(0.02 / 288)
    assert params.reversion_strength == pytest.approx(0.5 / 288)
    assert params.volatility == pytest.approx(0.1 * 0.5 / math.sqrt(288))


def test_shock_days_become_ticks():
    config = SimulationConfig(update_frequency_secs=3600)
    params = get_scenario("flash_crash").to_parameters(config)

    (shock,) = params.shocks
    assert shock.tick == 7 * 24
    assert shock.magnitude == -0.3
    assert shock.kind is ShockKind.FLASH_CRASH
    assert params.circuit_breaker == 0.2

    reversal = get_scenario("sentiment_reversal").to_parameters(config)
    assert reversal.shocks[0].kind is ShockKind.SENTIMENT_REVERSAL


def test_consensus_targets_run_threshold():
    config = SimulationConfig(threshold=0.65)
    assert get_scenario("consensus_formation").to_parameters(config).drift_target == 0.65


def test_custom_scenario():
    scenario = custom_scenario(
        "drop",
        drift_target=0.3,
        resolution_direction="down",
        shocks=[{"day": 2, "magnitude": -0.1, "kind": "flash_crash"}],
    )
    assert scenario.resolution_direction is ResolutionDirection.DOWN
    assert scenario.shocks[0].day == 2.0

    with pytest.raises(ConfigurationError):
        custom_scenario("bad", speed=3)
    with pytest.raises(ConfigurationError):
        custom_scenario("bad", drift_target=1.5)
    with pytest.raises(ConfigurationError):
        custom_scenario("bad", shocks=[{"day": -1, "magnitude": 0.1}])
    with pytest.raises(ConfigurationError):
        custom_scenario("bad", shocks=[{"magnitude": 0.1}])
    with pytest.raises(ConfigurationError):
        custom_scenario("bad", resolution_direction="sideways")


def test_load_scenarios_from_yaml(tmp_path):
    path = tmp_path / "scenarios.yaml"
    path.write_text(
        "- name: crash_then_recover\n"
        "  drift_target: 0.6\n"
        "  volatility_scale: 1.5\n"
        "  circuit_breaker: 0.2\n"
        "  shocks:\n"
        "    - {day: 3, magnitude: -0.25, kind: flash_crash}\n"
        "- name: quiet\n"
        "  volatility_scale: 0.1\n"
    )
    scenarios = load_scenarios(path)

    assert [s.name for s in scenarios] == ["crash_then_recover", "quiet"]
    assert scenarios[0].shocks[0].magnitude == -0.25
    assert scenarios[0].circuit_breaker == 0.2


def test_load_scenarios_from_json(tmp_path):
    path = tmp_path / "scenarios.json"
    path.write_text(json.dumps([{"name": "slow", "drift_per_day": 0.001}]))
    assert load_scenarios(path)[0].drift_per_day == 0.001


def test_load_scenarios_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_scenarios(tmp_path / "missing.yaml")

    path = tmp_path / "single.yaml"
    path.write_text("name: lonely\n")
    with pytest.raises(ConfigurationError):
        load_scenarios(path)
