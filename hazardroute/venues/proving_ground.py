"""Flat test venue with a single circle straddling a straight course."""

from ..hazards.hazard_model import AOEShape
from ..planning.stages import MoveStage
from .venue_config import SequenceLayout, VenueConfig

CIRCLE_HIT = 1
CIRCLE_CAST = 2

START = (0.0, 0.0, 0.0)
GOAL = (0.0, 0.0, 20.0)

PROVING_GROUND = VenueConfig(
    name="proving_ground",
    sequences=(SequenceLayout("circle", AOEShape.CIRCLE, 5.0, (((0.0, 0.0, 10.0), 2.5),)),),
    stages=(MoveStage(GOAL, ("circle",), label="goal"),),
    hit_actions={CIRCLE_HIT: ("circle",)},
    cast_actions={CIRCLE_CAST: ("circle",)},
    required_sequences=("circle",),
    progress_direction=(0.0, 0.0, 1.0),
    bounds=((-10.0, -5.0), (10.0, 30.0)),
    goal=GOAL,
    grid_center=(0.0, 0.0, 10.0),
    grid_half_extents=(10.0, 15.0),
    grid_duration=20.0,
)
