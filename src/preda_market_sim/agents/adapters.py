"""Builds the participant roster for a run."""

from __future__ import annotations

import math
from typing import List, Mapping, Optional, Sequence

import numpy as np

from .participants import Participant, ParticipantBehavior

DEFAULT_CAPITAL = 1000.0
RISK_TOLERANCE_RANGE = (0.1, 0.9)


def allocate_behaviors(
    num_participants: int,
    behavior_mix: Optional[Mapping[ParticipantBehavior, float]] = None,
) -> List[ParticipantBehavior]:
    """Assign a behavior to every participant index.

    Without a mix, behaviors rotate round-robin. With a mix, counts follow
    the weights using largest-remainder rounding and are laid out in enum
    order, so the allocation is deterministic.
    """
    behaviors = ParticipantBehavior.all()
    if not behavior_mix:
        return [behaviors[i % len(behaviors)] for i in range(num_participants)]

    total = sum(behavior_mix.values())
    quotas = {b: num_participants * behavior_mix.get(b, 0.0) / total for b in behaviors}
    counts = {b: math.floor(q) for b, q in quotas.items()}
    leftover = num_participants - sum(counts.values())
    by_remainder = sorted(behaviors, key=lambda b: (-(quotas[b] - counts[b]), behaviors.index(b)))
    for behavior in by_remainder[:leftover]:
        counts[behavior] += 1

    allocation: List[ParticipantBehavior] = []
    for behavior in behaviors:
        allocation.extend([behavior] * counts[behavior])
    return allocation


def create_participants(
    num_participants: int,
    seed_sequences: Sequence[np.random.SeedSequence],
    *,
    initial_capital: float = DEFAULT_CAPITAL,
    behavior_mix: Optional[Mapping[ParticipantBehavior, float]] = None,
) -> List[Participant]:
    """Instantiate participants, one independent RNG sub-stream each.

    The sub-stream for index ``i`` only depends on the run seed and ``i``, so
    a participant's draws never depend on how many others exist before it.
    """
    if len(seed_sequences) != num_participants:
        raise ValueError("Need exactly one seed sequence per participant.")

    low, high = RISK_TOLERANCE_RANGE
    participants = []
    for participant_id, (behavior, seq) in enumerate(
        zip(allocate_behaviors(num_participants, behavior_mix), seed_sequences)
    ):
        rng = np.random.default_rng(seq)
        participants.append(
            Participant(
                participant_id=participant_id,
                behavior=behavior,
                capital=initial_capital,
                risk_tolerance=float(rng.uniform(low, high)),
                rng=rng,
            )
        )
    return participants
