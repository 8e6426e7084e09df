"""Tests for SimulationConfig validation and environment loading."""

import os

import numpy as np
import pytest

from preda_market_sim.agents import ParticipantBehavior
from preda_market_sim.errors import ConfigurationError
from preda_market_sim.utils.config import SimulationConfig


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Isolate os.environ and the working directory for from_env tests."""
    monkeypatch.setattr(os, "environ", {k: v for k, v in os.environ.items() if not k.startswith("PREDA_")})
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_defaults_are_valid():
    config = SimulationConfig()
    assert config.duration_ticks == 8640
    assert config.persistence_ticks == 288
    assert config.seed is None


@pytest.mark.parametrize(
    "field,value",
    [
        ("duration_days", 0),
        ("duration_days", 366),
        ("num_participants", 0),
        ("num_participants", 10001),
        ("num_participants", True),
        ("initial_bsi", -0.1),
        ("initial_bsi", 1.1),
        ("volatility", 1.5),
        ("threshold", -0.01),
        ("persistence_hours", 0),
        ("persistence_hours", 169),
        ("update_frequency_secs", 0),
        ("update_frequency_secs", 3601),
        ("seed", -1),
        ("initial_capital", 0),
    ],
)
def test_out_of_range_fields_are_rejected(field, value):
    with pytest.raises(ConfigurationError) as excinfo:
        SimulationConfig(**{field: value})
    assert excinfo.value.field == field


def test_bounds_are_inclusive():
    config = SimulationConfig(
        duration_days=365,
        num_participants=10000,
        initial_bsi=1.0,
        volatility=0.0,
        threshold=0.0,
        persistence_hours=168,
        update_frequency_secs=3600,
        seed=0,
    )
    assert config.duration_ticks == 365 * 24


def test_behavior_mix_validation():
    with pytest.raises(ConfigurationError):
        SimulationConfig(behavior_mix={ParticipantBehavior.RATIONAL: 0.0})
    with pytest.raises(ConfigurationError):
        SimulationConfig(behavior_mix={ParticipantBehavior.RATIONAL: -1.0})
    with pytest.raises(ConfigurationError):
        SimulationConfig(behavior_mix={"rational": 1.0})

    config = SimulationConfig(behavior_mix={ParticipantBehavior.RATIONAL: 2.0})
    assert config.behavior_mix[ParticipantBehavior.RATIONAL] == 2.0


def test_with_seed_returns_copy():
    config = SimulationConfig(seed=1)
    assert config.with_seed(5).seed == 5
    assert config.seed == 1


def test_from_env_reads_prefixed_variables(clean_env):
    os.environ["PREDA_NUM_PARTICIPANTS"] = "250"
    os.environ["PREDA_SEED"] = "9"
    os.environ["PREDA_THRESHOLD"] = "0.6"

    config = SimulationConfig.from_env()
    assert config.num_participants == 250
    assert config.seed == 9
    assert config.threshold == 0.6
    assert config.duration_days == 30


def test_from_env_reads_config_file(clean_env):
    (clean_env / "config.env").write_text(
        "# simulation settings\n"
        "PREDA_DURATION_DAYS=7\n"
        "\n"
        "PREDA_VOLATILITY = 0.3\n"
    )
    config = SimulationConfig.from_env()
    assert config.duration_days == 7
    assert config.volatility == 0.3


def test_existing_environment_wins_over_file(clean_env):
    path = clean_env / "custom.env"
    path.write_text("PREDA_DURATION_DAYS=7\n")
    os.environ["PREDA_DURATION_DAYS"] = "3"

    assert SimulationConfig.from_env(config_file=str(path)).duration_days == 3


def test_overrides_win_over_environment(clean_env):
    os.environ["PREDA_NUM_PARTICIPANTS"] = "250"
    assert SimulationConfig.from_env(num_participants=40).num_participants == 40


def test_malformed_environment_value(clean_env):
    os.environ["PREDA_DURATION_DAYS"] = "ten"
    with pytest.raises(ConfigurationError) as excinfo:
        SimulationConfig.from_env()
    assert excinfo.value.field == "duration_days"


def test_numpy_integers_are_accepted():
    config = SimulationConfig(seed=np.int64(5), num_participants=np.int32(20))
    assert config.seed == 5
    assert config.num_participants == 20
    with pytest.raises(ConfigurationError):
        SimulationConfig(seed=np.int64(-1))
