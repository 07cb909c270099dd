"""
Tests for the repeating hazard timing model.
"""

import math

import pytest

from hazardroute.hazards import AOEShape, HazardModel, HazardSequence, RepeatingAOE, circle_sequence


def make_circle(next_activation=None, period=2.5, active_duration=0.0):
    return RepeatingAOE(
        shape=AOEShape.CIRCLE,
        size=5.0,
        origin=(0.0, 0.0, 10.0),
        sequence_delay=period,
        repeat_period=period,
        active_duration=active_duration,
        next_activation=next_activation,
    )


class TestRepeatingAOE:
    """Activation queries on a single hazard."""

    def test_unknown_timing(self):
        aoe = make_circle()
        assert not aoe.is_synchronized
        assert math.isinf(aoe.time_until_next_activation(0.0))
        assert aoe.activates_between(0.0, 0.0, 100.0) is None
        assert not aoe.is_live_at(0.0)

    def test_time_until_next_activation_walks_periods(self):
        aoe = make_circle(next_activation=2.0)
        assert aoe.time_until_next_activation(0.0) == pytest.approx(2.0)
        assert aoe.time_until_next_activation(2.0) == pytest.approx(0.0)
        assert aoe.time_until_next_activation(3.0) == pytest.approx(1.5)
        assert aoe.time_until_next_activation(-3.0) == pytest.approx(0.0)
        assert aoe.time_until_next_activation(100.1) == pytest.approx(1.9)

    def test_activates_between_window(self):
        aoe = make_circle(next_activation=2.5)
        assert aoe.activates_between(0.0, 1.0, 1.2) is None
        assert aoe.activates_between(0.0, 1.0, 2.0) is None
        assert aoe.activates_between(0.0, 2.0, 3.0) == pytest.approx(0.5)

    def test_activates_between_negative_window(self):
        aoe = make_circle(next_activation=2.5)
        assert aoe.activates_between(0.0, -5.0, -1.0) is None
        # lo is clamped to zero
        assert aoe.activates_between(2.4, -1.0, 0.5) == pytest.approx(0.1)

    def test_window_across_period_boundary(self):
        aoe = make_circle(next_activation=2.5)
        assert aoe.activates_between(0.0, 2.4, 2.6) == pytest.approx(0.1)
        # a stale next_activation still projects forward correctly
        assert aoe.activates_between(10.0, 2.4, 2.6) == pytest.approx(0.1)
        assert aoe.activates_between(10.0, 2.6, 4.9) is None

    def test_active_duration(self):
        aoe = make_circle(next_activation=2.0, period=5.0, active_duration=1.0)
        assert aoe.is_live_at(2.5)
        assert not aoe.is_live_at(3.5)
        assert not aoe.is_live_at(1.9)
        # already live when the window opens: reports when it ends
        assert aoe.activates_between(0.0, 2.5, 2.6) == pytest.approx(0.5)

    def test_time_until_overlap(self):
        aoe = make_circle(next_activation=2.0)
        overlap = aoe.time_until_overlap(0.0, (0, 0, 0), (0, 0, 1), speed=6.0)
        assert overlap == pytest.approx(2.0 - 5.0 / 6.0)
        assert aoe.time_until_overlap(0.0, (20, 0, 0), (0, 0, 1)) is None
        # moving away from the footprint
        assert aoe.time_until_overlap(0.0, (0, 0, -1), (0, 0, -1)) is None

    def test_time_until_overlap_stops_at_max_distance(self):
        aoe = make_circle(next_activation=0.9)
        # crossing [5, 6] spans 5/6 .. 1.0 s and contains the activation
        overlap = aoe.time_until_overlap(0.0, (0, 0, 0), (0, 0, 1), speed=6.0, max_distance=6.0)
        assert overlap == pytest.approx(0.9 - 5.0 / 6.0)
        assert aoe.time_until_overlap(0.0, (0, 0, 0), (0, 0, 1), speed=6.0, max_distance=4.0) is None
        assert aoe.time_until_overlap(0.0, (0, 0, 0), (0, 0, 1), speed=6.0, max_distance=5.1) is None

    def test_shape_dispatch(self):
        square = RepeatingAOE(shape=AOEShape.SQUARE, size=3.0, origin=(0.0, 0.0, 0.0))
        assert square.contains((3.0, 0.0, -3.0))
        assert square.intersect((-10, 0, 0), (1, 0, 0)) == pytest.approx((7.0, 13.0))
        rect = RepeatingAOE(
            shape=AOEShape.RECT, size=10.0, half_width=1.0, rotation=math.pi / 2, origin=(0.0, 0.0, 0.0)
        )
        assert rect.contains((5.0, 0.0, 0.0))
        assert rect.intersect((5, 0, -5), (0, 0, 1)) == pytest.approx((4.0, 6.0))

    def test_outline(self):
        assert make_circle().outline(0.1).shape == (16, 3)
        square = RepeatingAOE(shape=AOEShape.SQUARE, size=3.0, origin=(0.0, 1.0, 0.0))
        outline = square.outline()
        assert outline.shape == (4, 3)
        assert outline[:, 0].max() == pytest.approx(3.0)


class TestHazardSequence:
    def setup_method(self):
        self.sequence = circle_sequence("pair", 5.0, [((0, 0, 0), 1.0), ((5, 0, 0), 1.5)])

    def test_period_is_sum_of_delays(self):
        assert self.sequence.repeat_period == pytest.approx(2.5)
        assert all(m.repeat_period == pytest.approx(2.5) for m in self.sequence)
        assert len(self.sequence) == 2

    def test_find_index(self):
        assert self.sequence.find_index((0.5, 0.0, 0.5), 1.0) == 0
        assert self.sequence.find_index((5.0, 0.9, 0.0), 1.0) == 1
        assert self.sequence.find_index((3.0, 0.0, 0.0), 1.0) == -1

    def test_offset_wraps(self):
        assert self.sequence.offset(1, 1) == 0
        assert self.sequence.offset(0, 5) == 1

    def test_synchronized_flag(self):
        assert not self.sequence.is_synchronized
        self.sequence[0].next_activation = 1.0
        assert self.sequence.is_synchronized
        assert not HazardSequence("empty").is_synchronized


class TestHazardModel:
    def setup_method(self):
        self.model = HazardModel(
            [
                circle_sequence("a", 5.0, [((0, 0, 0), 2.0)]),
                circle_sequence("b", 3.0, [((10, 0, 0), 1.0), ((20, 0, 0), 1.0)]),
            ]
        )

    def test_duplicate_name_rejected(self):
        with pytest.raises(ValueError):
            self.model.add(circle_sequence("a", 1.0, [((0, 0, 0), 1.0)]))

    def test_unknown_sequence(self):
        with pytest.raises(KeyError):
            self.model.sequence("missing")

    def test_hazards_flattened(self):
        assert len(self.model.hazards()) == 3
        assert len(self.model.hazards(["b"])) == 2
        assert self.model.names() == ["a", "b"]

    def test_snapshots(self):
        self.model.sequence("a")[0].next_activation = 5.0
        snapshots = self.model.snapshots(4.5)
        assert len(snapshots) == 3
        first = snapshots[0]
        assert first.sequence == "a"
        assert first.time_until_activation == pytest.approx(0.5)
        assert math.isinf(snapshots[1].time_until_activation)

    def test_is_synchronized_and_reset(self):
        assert self.model.is_synchronized([])
        assert not self.model.is_synchronized(["a"])
        sequence = self.model.sequence("a")
        sequence[0].next_activation = 1.0
        sequence.first_observed_index = 0
        assert self.model.is_synchronized(["a"])
        assert self.model.first_observed() == {"a": 0, "b": None}

        self.model.reset()
        assert not self.model.is_synchronized(["a"])
        assert self.model.first_observed() == {"a": None, "b": None}
