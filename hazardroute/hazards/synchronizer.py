"""
Hazard schedule synchronization from telemetry observations.

Observing a single member of a HazardSequence fixes the absolute activation
time of every member: the synchronizer matches an event to a member by
position and walks the ring from there, accumulating sequence delays.
"""

import logging
from typing import Dict, Iterable, Mapping, Optional, Sequence, Tuple

from ..constants.movement_constants import MATCH_TOLERANCE_SQ
from .hazard_model import HazardModel, HazardSequence
from .telemetry import EventKind, HazardEvent

logger = logging.getLogger(__name__)

ActionTable = Mapping[int, Sequence[str]]


class HazardSynchronizer:
    """
    Writes next-activation times into a HazardModel.

    The synchronizer is the only writer of hazard timestamps. Candidate
    sequences for each action identifier come from static per-venue tables;
    identifiers are reused across unrelated mechanics, so events that match
    no candidate are expected and simply dropped.
    """

    def __init__(
        self,
        model: HazardModel,
        hit_actions: Optional[ActionTable] = None,
        cast_actions: Optional[ActionTable] = None,
        match_tolerance_sq: float = MATCH_TOLERANCE_SQ,
    ):
        self.model = model
        self.hit_actions: Dict[int, Tuple[str, ...]] = {
            int(k): tuple(v) for k, v in (hit_actions or {}).items()
        }
        self.cast_actions: Dict[int, Tuple[str, ...]] = {
            int(k): tuple(v) for k, v in (cast_actions or {}).items()
        }
        self.match_tolerance_sq = match_tolerance_sq
        self.dropped_events = 0

    def candidates(self, event: HazardEvent) -> Tuple[str, ...]:
        table = self.cast_actions if event.kind is EventKind.CAST_STARTED else self.hit_actions
        return table.get(event.action_id, ())

    def process(self, event: HazardEvent) -> bool:
        """Synchronize the first candidate sequence matching the event; True on success."""
        names = self.candidates(event)
        for name in names:
            sequence = self.model.sequence(name)
            index = sequence.find_index(event.position, self.match_tolerance_sq)
            if index < 0:
                continue
            self.synchronize(sequence, index, event.anchor_time, event.kind is EventKind.HIT)
            return True

        self.dropped_events += 1
        if names:
            logger.warning(
                "Failed to match action %d at %s to any of %s",
                event.action_id,
                event.position,
                ", ".join(names),
            )
        else:
            logger.debug("Ignoring unmapped action %d (%s)", event.action_id, event.kind.value)
        return False

    def process_all(self, events: Iterable[HazardEvent]) -> int:
        return sum(1 for event in events if self.process(event))

    def synchronize(
        self, sequence: HazardSequence, index: int, anchor: float, activated: bool
    ) -> None:
        """
        Assign absolute activation times around the ring.

        activated=True means member `index` fired at `anchor`, so the walk
        starts at the following member and the matched member comes last,
        one full period later. activated=False means member `index` is about
        to fire at `anchor`, so the walk starts at the matched member itself.
        Member j receives anchor + delay(index) + ... + delay(j - 1).
        """
        count = len(sequence)
        if count == 0:
            return

        if sequence.first_observed_index is None:
            sequence.first_observed_index = index
            logger.info("Starting sequence %s from member %d", sequence.name, index)

        if activated:
            sequence.next_index = sequence.offset(index, 1)
            t = anchor
            previous = sequence[index]
            for step in range(count):
                member = sequence[sequence.offset(sequence.next_index, step)]
                t += previous.sequence_delay
                member.next_activation = t
                previous = member
        else:
            sequence.next_index = index
            t = anchor
            for step in range(count):
                member = sequence[sequence.offset(index, step)]
                member.next_activation = t
                t += member.sequence_delay

        logger.debug(
            "Synchronized %s: next member %d at %.3f",
            sequence.name,
            sequence.next_index,
            sequence[sequence.next_index].next_activation,
        )
