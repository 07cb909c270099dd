"""
Inbound telemetry events and the buffer the engine drains once per tick.

The telemetry collaborator pushes (identifier, position) observations; the
session pulls them in arrival order so that hazard updates and route rebuilds
stay strictly sequenced.
"""

from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Deque, List

from ..utils.geometry import Vec3


class EventKind(Enum):
    """What the observation says about the hazard."""

    HIT = "hit"  # hazard is activating now
    CAST_STARTED = "cast_started"  # hazard activates after lead_time


@dataclass(frozen=True)
class HazardEvent:
    kind: EventKind
    action_id: int
    position: Vec3
    observed_at: float
    lead_time: float = 0.0

    @property
    def anchor_time(self) -> float:
        """Absolute instant at which the observed hazard activates."""
        if self.kind is EventKind.CAST_STARTED:
            return self.observed_at + self.lead_time
        return self.observed_at


class TelemetryQueue:
    """FIFO buffer of hazard events awaiting synchronization."""

    def __init__(self) -> None:
        self._events: Deque[HazardEvent] = deque()

    def __len__(self) -> int:
        return len(self._events)

    def push(self, event: HazardEvent) -> None:
        self._events.append(event)

    def push_hit(self, action_id: int, position: Vec3, observed_at: float) -> None:
        self.push(HazardEvent(EventKind.HIT, int(action_id), tuple(position), observed_at))

    def push_cast_started(
        self, action_id: int, position: Vec3, observed_at: float, lead_time: float
    ) -> None:
        if lead_time < 0.0:
            raise ValueError("lead_time must be non-negative")
        self.push(
            HazardEvent(EventKind.CAST_STARTED, int(action_id), tuple(position), observed_at, lead_time)
        )

    def drain(self) -> List[HazardEvent]:
        events = list(self._events)
        self._events.clear()
        return events

    def clear(self) -> None:
        self._events.clear()
