"""Shared fixtures for the simulator test suite."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

import numpy as np
import pytest

from preda_market_sim.agents.participants import Participant, ParticipantBehavior
from preda_market_sim.utils.config import SimulationConfig


@pytest.fixture
def make_participant():
    def _make(participant_id=0, capital=100.0, behavior=ParticipantBehavior.RATIONAL, risk_tolerance=0.5):
        return Participant(
            participant_id=participant_id,
            behavior=behavior,
            capital=capital,
            risk_tolerance=risk_tolerance,
            rng=np.random.default_rng(participant_id),
        )

    return _make


@pytest.fixture
def small_config():
    """One simulated day at hourly ticks: ticks 0..24."""
    return SimulationConfig(
        duration_days=1,
        num_participants=12,
        update_frequency_secs=3600,
        persistence_hours=2,
        threshold=0.75,
        seed=7,
    )
