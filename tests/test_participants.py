"""Tests for participant policies and roster construction."""

import numpy as np
import pytest

from preda_market_sim.agents import allocate_behaviors, create_participants
from preda_market_sim.agents.participants import (
    AGGRESSIVE_SIZE,
    CONSERVATIVE_SIZE,
    MOMENTUM_SIZE,
    MOMENTUM_WINDOW,
    POLICIES,
    RANDOM_TRADE_PROBABILITY,
    RATIONAL_SIZE,
    ParticipantBehavior,
    decide,
    slope,
)
from preda_market_sim.oracle import ResolutionDirection
from preda_market_sim.simulation.interfaces import Position, Side

UP = ResolutionDirection.UP
DOWN = ResolutionDirection.DOWN


def _decide(
    behavior,
    bsi,
    history=(),
    threshold=0.75,
    position=None,
    capital=1000.0,
    risk=0.5,
    direction=UP,
    rng=None,
):
    return decide(
        behavior,
        bsi_now=bsi,
        history=tuple(history),
        threshold=threshold,
        position=position,
        capital=capital,
        risk_tolerance=risk,
        direction=direction,
        rng=rng if rng is not None else np.random.default_rng(0),
    )


def _long(size):
    return Position(entry_bsi=0.5, size=size, open_tick=0)


def test_every_behavior_has_a_policy():
    assert set(POLICIES) == set(ParticipantBehavior)


def test_rational_buys_below_threshold_in_proportion_to_gap():
    intent = _decide(ParticipantBehavior.RATIONAL, 0.5)
    assert intent.side is Side.BUY
    assert intent.size == pytest.approx(0.25 * RATIONAL_SIZE * 0.5 * 1000.0)

    wider = _decide(ParticipantBehavior.RATIONAL, 0.3)
    assert wider.size > intent.size


def test_rational_sells_above_threshold():
    intent = _decide(ParticipantBehavior.RATIONAL, 0.9)
    assert intent.side is Side.SELL
    assert intent.size == pytest.approx(0.15 * RATIONAL_SIZE * 0.5 * 1000.0)


def test_rational_stays_flat_at_threshold():
    assert _decide(ParticipantBehavior.RATIONAL, 0.75) is None


def test_rational_mirrors_for_downward_market():
    up = _decide(ParticipantBehavior.RATIONAL, 0.5, direction=UP)
    down = _decide(ParticipantBehavior.RATIONAL, 0.5, direction=DOWN)
    assert up.side is Side.BUY
    assert down.side is Side.SELL
    assert up.size == pytest.approx(down.size)


def test_rational_holds_then_flips():
    assert _decide(ParticipantBehavior.RATIONAL, 0.5, position=_long(10.0)) is None

    flip = _decide(ParticipantBehavior.RATIONAL, 0.5, position=_long(-10.0))
    assert flip.side is Side.BUY
    assert flip.size == pytest.approx(0.25 * RATIONAL_SIZE * 0.5 * 1000.0 + 10.0)


def test_momentum_is_flat_during_warm_up():
    history = np.linspace(0.4, 0.5, MOMENTUM_WINDOW - 1)
    assert _decide(ParticipantBehavior.MOMENTUM, 0.5, history=history) is None
    assert slope(tuple(history)) is None


def test_momentum_follows_and_contrarian_opposes_trend():
    history = np.linspace(0.4, 0.5, 30)
    momentum = _decide(ParticipantBehavior.MOMENTUM, 0.5, history=history)
    contrarian = _decide(ParticipantBehavior.CONTRARIAN, 0.5, history=history)

    assert momentum.side is Side.BUY
    assert contrarian.side is Side.SELL
    assert momentum.size == pytest.approx(MOMENTUM_SIZE * 0.5 * 1000.0)
    assert contrarian.size == pytest.approx(momentum.size)


def test_momentum_ignores_flat_history():
    history = [0.5] * 30
    assert _decide(ParticipantBehavior.MOMENTUM, 0.5, history=history) is None
    assert _decide(ParticipantBehavior.CONTRARIAN, 0.5, history=history) is None


def test_momentum_orients_trend_by_direction():
    history = np.linspace(0.4, 0.5, 30)
    intent = _decide(ParticipantBehavior.MOMENTUM, 0.5, history=history, direction=DOWN)
    assert intent.side is Side.SELL


def test_random_is_reproducible_per_stream():
    def run(seed):
        rng = np.random.default_rng(seed)
        return [_decide(ParticipantBehavior.RANDOM, 0.5, rng=rng) for _ in range(500)]

    assert run(11) == run(11)
    assert run(11) != run(12)


def test_random_trades_at_configured_rate():
    rng = np.random.default_rng(3)
    intents = [_decide(ParticipantBehavior.RANDOM, 0.5, rng=rng) for _ in range(10000)]
    trades = [i for i in intents if i is not None]
    expected = 10000 * RANDOM_TRADE_PROBABILITY
    assert 0.6 * expected < len(trades) < 1.4 * expected
    assert {t.side for t in trades} == {Side.BUY, Side.SELL}


def test_random_consumes_fixed_draws():
    used = np.random.default_rng(9)
    reference = np.random.default_rng(9)
    _decide(ParticipantBehavior.RANDOM, 0.5, rng=used)
    reference.random(3)
    assert used.random() == reference.random()


def test_conservative_needs_conviction_and_does_not_add():
    assert _decide(ParticipantBehavior.CONSERVATIVE, 0.6) is None

    intent = _decide(ParticipantBehavior.CONSERVATIVE, 0.5)
    assert intent.side is Side.BUY
    assert intent.size == pytest.approx(CONSERVATIVE_SIZE * 0.5 * 1000.0)

    assert _decide(ParticipantBehavior.CONSERVATIVE, 0.5, position=_long(5.0)) is None


def test_aggressive_trades_small_on_any_signal():
    clip = AGGRESSIVE_SIZE * 0.5 * 1000.0
    intent = _decide(ParticipantBehavior.AGGRESSIVE, 0.74)
    assert intent.side is Side.BUY
    assert intent.size == pytest.approx(clip)

    added = _decide(ParticipantBehavior.AGGRESSIVE, 0.74, position=_long(clip))
    assert added.size == pytest.approx(clip)

    assert _decide(ParticipantBehavior.AGGRESSIVE, 0.74, position=_long(5 * clip)) is None


def test_aggressive_without_signal_stays_flat():
    assert _decide(ParticipantBehavior.AGGRESSIVE, 0.75, history=[0.75] * 30) is None


@pytest.mark.parametrize("behavior", list(ParticipantBehavior))
def test_opening_leg_never_exceeds_capital(behavior):
    rng = np.random.default_rng(21)
    history = list(np.clip(0.5 + np.cumsum(rng.normal(0, 0.01, 80)), 0, 1))
    for capital in (0.5, 5.0, 500.0):
        for bsi in (0.0, 0.3, 0.74, 0.76, 1.0):
            intent = _decide(behavior, bsi, history=history, capital=capital, risk=0.9, rng=rng)
            if intent is not None:
                assert 0 < intent.size <= capital


def test_participant_decide_uses_own_state(make_participant):
    participant = make_participant(behavior=ParticipantBehavior.RATIONAL, capital=1000.0)
    intent = participant.decide(0.5, (), 0.75)
    assert intent == _decide(ParticipantBehavior.RATIONAL, 0.5)


def test_round_robin_allocation():
    allocation = allocate_behaviors(12)
    assert allocation[:6] == list(ParticipantBehavior)
    assert allocation[6:] == list(ParticipantBehavior)


def test_weighted_allocation_uses_largest_remainder():
    mix = {ParticipantBehavior.RATIONAL: 0.5, ParticipantBehavior.RANDOM: 0.5}
    allocation = allocate_behaviors(5, mix)
    assert allocation == [ParticipantBehavior.RATIONAL] * 3 + [ParticipantBehavior.RANDOM] * 2


def test_create_participants_is_deterministic():
    first = create_participants(10, np.random.SeedSequence(5).spawn(10))
    second = create_participants(10, np.random.SeedSequence(5).spawn(10))
    assert [p.risk_tolerance for p in first] == [p.risk_tolerance for p in second]
    assert [p.participant_id for p in first] == list(range(10))
    assert all(0.1 <= p.risk_tolerance <= 0.9 for p in first)
    assert all(p.capital == 1000.0 for p in first)


def test_substream_depends_only_on_index():
    few = create_participants(4, np.random.SeedSequence(5).spawn(4))
    many = create_participants(10, np.random.SeedSequence(5).spawn(10))
    assert [p.risk_tolerance for p in few] == [p.risk_tolerance for p in many[:4]]


def test_create_participants_needs_one_stream_each():
    with pytest.raises(ValueError):
        create_participants(3, np.random.SeedSequence(0).spawn(2))
