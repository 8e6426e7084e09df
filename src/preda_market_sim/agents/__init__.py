"""Participant behavior models and roster construction."""

from .participants import (
    HISTORY_WINDOW,
    MOMENTUM_WINDOW,
    Participant,
    ParticipantBehavior,
    decide,
    gap_signal,
    slope,
)
from .adapters import DEFAULT_CAPITAL, allocate_behaviors, create_participants

__all__ = [
    "HISTORY_WINDOW",
    "MOMENTUM_WINDOW",
    "Participant",
    "ParticipantBehavior",
    "decide",
    "gap_signal",
    "slope",
    "DEFAULT_CAPITAL",
    "allocate_behaviors",
    "create_participants",
]
