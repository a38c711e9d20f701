"""Service module exports."""

from . import frequency, habits, ledger, reports, strength, tracker
from .tracker import HabitTracker

__all__ = [
    "HabitTracker",
    "frequency",
    "habits",
    "ledger",
    "reports",
    "strength",
    "tracker",
]
