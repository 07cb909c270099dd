"""
Hazard timing model, telemetry intake and schedule synchronization.
"""

from .hazard_model import (
    AOEShape,
    RepeatingAOE,
    HazardSequence,
    HazardModel,
    HazardSnapshot,
    circle_sequence,
)
from .telemetry import EventKind, HazardEvent, TelemetryQueue
from .synchronizer import HazardSynchronizer

__all__ = [
    "AOEShape",
    "RepeatingAOE",
    "HazardSequence",
    "HazardModel",
    "HazardSnapshot",
    "circle_sequence",
    "EventKind",
    "HazardEvent",
    "TelemetryQueue",
    "HazardSynchronizer",
]
