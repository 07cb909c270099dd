"""
Tests for bundled venue data, venue selection and the descending ramp course.
"""

import pytest

from hazardroute.hazards import AOEShape, EventKind, HazardEvent, HazardSynchronizer
from hazardroute.planning import BranchingPlanner, ChoiceStage, MoveStage, PlanStatus
from hazardroute.venues import (
    DESCENDING_RAMP,
    PROVING_GROUND,
    HeightProfile,
    SequenceLayout,
    VenueConfig,
    get_venue,
    select_venue,
)
from hazardroute.venues import descending_ramp


def walk_choices(stages):
    for stage in stages:
        if isinstance(stage, ChoiceStage):
            yield stage
            for _, option in stage.options:
                yield from walk_choices(option)


def walk_moves(stages):
    for stage in stages:
        if isinstance(stage, ChoiceStage):
            for _, option in stage.options:
                yield from walk_moves(option)
        elif isinstance(stage, MoveStage):
            yield stage


class TestVenueRegistry:
    def test_select_by_position(self):
        assert select_venue((0.0, 3.0, 280.0)) is DESCENDING_RAMP
        assert select_venue((0.0, 0.0, 0.0)) is PROVING_GROUND
        assert select_venue((100.0, 0.0, 0.0)) is None

    def test_get_venue(self):
        assert get_venue("proving_ground") is PROVING_GROUND
        with pytest.raises(KeyError):
            get_venue("nowhere")

    def test_build_model_is_fresh_each_time(self):
        first = PROVING_GROUND.build_model()
        second = PROVING_GROUND.build_model()
        first.sequence("circle")[0].next_activation = 1.0
        assert second.sequence("circle")[0].next_activation is None


class TestVenueValidation:
    def test_sequence_spec_validation(self):
        with pytest.raises(ValueError):
            SequenceLayout("empty", AOEShape.CIRCLE, 5.0, ())
        with pytest.raises(ValueError):
            SequenceLayout("zero", AOEShape.CIRCLE, 5.0, (((0, 0, 0), 0.0),))
        with pytest.raises(ValueError):
            SequenceLayout("neg", AOEShape.CIRCLE, 5.0, (((0, 0, 0), -1.0), ((1, 0, 0), 2.0)))
        with pytest.raises(ValueError):
            SequenceLayout("rot", AOEShape.RECT, 5.0, (((0, 0, 0), 1.0),), half_width=1.0, rotations=(0.0, 1.0))

    def test_rect_sequence_rotations(self):
        layout = SequenceLayout(
            "rects", AOEShape.RECT, 4.0, (((0, 0, 0), 1.0), ((5, 0, 0), 1.0)), half_width=1.5, rotations=(0.5, -0.5)
        )
        sequence = layout.build()
        assert [m.rotation for m in sequence] == [0.5, -0.5]
        assert sequence[0].half_width == 1.5

    def test_unknown_action_sequence(self):
        with pytest.raises(ValueError):
            VenueConfig(
                name="bad",
                sequences=(SequenceLayout("a", AOEShape.CIRCLE, 1.0, (((0, 0, 0), 1.0),)),),
                stages=(),
                hit_actions={1: ("b",)},
            )

    def test_unknown_required_sequence(self):
        with pytest.raises(ValueError):
            VenueConfig(
                name="bad",
                sequences=(SequenceLayout("a", AOEShape.CIRCLE, 1.0, (((0, 0, 0), 1.0),)),),
                stages=(),
                required_sequences=("b",),
            )


class TestHeightProfile:
    def test_interpolation_and_clamping(self):
        profile = descending_ramp.HEIGHT_PROFILE
        assert profile.elevation_at(262.9) == pytest.approx(6.0)
        assert profile.elevation_at((273.2 + 286.9) / 2) == pytest.approx(4.6)
        assert profile.elevation_at(100.0) == pytest.approx(36.2)
        assert profile.elevation_at(400.0) == pytest.approx(3.2)

    def test_unsorted_points(self):
        profile = HeightProfile([(10.0, 1.0), (0.0, 0.0)])
        assert profile.elevation_at(5.0) == pytest.approx(0.5)
        assert profile.lift((3.0, 99.0, 5.0)) == (3.0, 0.5, 5.0)

    def test_needs_two_points(self):
        with pytest.raises(ValueError):
            HeightProfile([(0.0, 0.0)])


class TestDescendingRamp:
    def setup_method(self):
        self.model = DESCENDING_RAMP.build_model()

    def test_sequences(self):
        assert len(self.model.sequences()) == 15
        periods = {s.name: s.repeat_period for s in self.model.sequences()}
        assert periods["mech1_rotating"] == pytest.approx(2.4)
        assert periods["mech2_exaflares"] == pytest.approx(11.2)
        assert periods["mech4_rects_L"] == pytest.approx(6.2)
        assert periods["mech4_rects_C"] == pytest.approx(6.2)
        assert periods["mech4_exaflare"] == pytest.approx(6.1)
        assert periods["mech5_pair_L1"] == pytest.approx(5.0)
        assert self.model.sequence("mech4_rects_R")[0].shape == AOEShape.SQUARE

    def test_branching_factor(self):
        choices = list(walk_choices(DESCENDING_RAMP.stages))
        assert choices
        assert all(1 <= len(choice.options) <= 4 for choice in choices)

    def test_stage_targets_follow_height_profile(self):
        for move in walk_moves(DESCENDING_RAMP.stages):
            x, y, z = move.target
            assert y == pytest.approx(descending_ramp.HEIGHT_PROFILE.elevation_at(z))
            assert DESCENDING_RAMP.contains(move.target)

    def test_awaits_required_observations(self):
        planner = BranchingPlanner(
            DESCENDING_RAMP.stages,
            DESCENDING_RAMP.progress_direction,
            required_sequences=DESCENDING_RAMP.required_sequences,
        )
        plan = planner.plan(self.model, (0.0, 3.2, 290.0), 0.0)
        assert plan.status is PlanStatus.AWAITING_OBSERVATIONS

    def test_plan_reaches_finish_when_hazards_dormant(self):
        planner = BranchingPlanner(DESCENDING_RAMP.stages, DESCENDING_RAMP.progress_direction)
        plan = planner.plan(self.model, (0.0, 3.2, 290.0), 0.0)
        assert plan.status is PlanStatus.READY
        x, y, z = plan.waypoints[-1].dest
        assert z == pytest.approx(124.0)
        assert abs(x) == pytest.approx(8.5)
        assert y == pytest.approx(36.2)
        # descending course: every waypoint makes progress towards -Z
        zs = [w.dest[2] for w in plan.waypoints]
        assert zs == sorted(zs, reverse=True)

    def test_replan_from_mid_course_skips_passed_stages(self):
        planner = BranchingPlanner(DESCENDING_RAMP.stages, DESCENDING_RAMP.progress_direction)
        plan = planner.plan(self.model, (0.0, 15.0, 220.0), 0.0)
        assert plan.status is PlanStatus.READY
        assert all(w.dest[2] <= 220.0 for w in plan.waypoints)

    def test_rects_cast_synchronizes_side_lanes(self):
        sync = HazardSynchronizer(
            self.model, DESCENDING_RAMP.hit_actions, DESCENDING_RAMP.cast_actions
        )
        event_position = (-12.0, 25.59, 190.4)
        lead = DESCENDING_RAMP.lead_time(descending_ramp.RECTS_CAST, 0.0)
        assert lead == pytest.approx(1.0)
        assert sync.process(HazardEvent(EventKind.CAST_STARTED, descending_ramp.RECTS_CAST, event_position, 5.0, lead))
        rects = self.model.sequence("mech4_rects_L")
        assert rects.first_observed_index == 0
        assert rects[0].next_activation == pytest.approx(6.0)

    def test_strategy(self):
        assert DESCENDING_RAMP.describe_strategy(self.model) == ""
        for name, index in (
            ("mech2_exaflares", 1),
            ("mech3_exaflares", 2),
            ("mech4_rects_L", 0),
            ("mech4_exaflare", 0),
        ):
            self.model.sequence(name).first_observed_index = index
        assert DESCENDING_RAMP.describe_strategy(self.model) == "L -> 1 -> L -> 1 [inner, 2 3 1 ?]"

        self.model.sequence("mech3_exaflares").first_observed_index = 4
        self.model.sequence("mech4_rects_L").first_observed_index = 7
        self.model.sequence("mech6_exaflare").first_observed_index = 3
        assert DESCENDING_RAMP.describe_strategy(self.model) == "L -> 2 -> R -> 2 [outer, 2 1 1 4]"

    def test_static_terrain(self):
        grid = DESCENDING_RAMP.build_grid(0.5, 0.25)
        assert grid.is_blocked((0.0, 0.0, 274.0), 0.0)
        assert grid.is_blocked((0.0, 0.0, 274.0), 59.0)
        assert grid.is_blocked((-4.0, 0.0, 292.0), 10.0)
        assert not grid.is_blocked((-12.0, 0.0, 260.0), 0.0)
        assert not grid.is_blocked((-8.5, 0.0, 124.5), 0.0)
