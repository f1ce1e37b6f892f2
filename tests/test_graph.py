import math

import pytest

from resmon.graph import DEFAULT_LOCKED_MAX_Y, Graph


def test_push_keeps_only_newest_points():
    graph = Graph(max_amount=3)
    for value in (1.0, 2.0, 3.0, 4.0, 5.0):
        graph.push(value)
    assert graph.points == (3.0, 4.0, 5.0)
    assert len(graph) == 3


def test_filled_points_pads_front_with_zeros():
    graph = Graph(max_amount=4)
    graph.push(0.5)
    graph.push(0.75)
    assert graph.filled_points() == [0.0, 0.0, 0.5, 0.75]


def test_filled_points_length_always_matches_max_amount():
    graph = Graph(max_amount=5)
    for value in range(12):
        graph.push(value)
        assert len(graph.filled_points()) == 5


def test_default_y_axis_is_locked():
    graph = Graph(max_amount=2)
    graph.push(7.0)
    assert graph.y_max() == DEFAULT_LOCKED_MAX_Y


def test_unlocked_y_axis_scales_to_highest_point():
    graph = Graph(max_amount=3, locked_max_y=None)
    graph.push(2.0)
    graph.push(9.0)
    graph.push(4.0)
    assert graph.y_max() == 9.0


def test_unlocked_y_axis_with_only_padding_is_zero():
    graph = Graph(max_amount=3, locked_max_y=None)
    assert graph.y_max() == 0.0


def test_unlocked_y_axis_without_points_raises():
    graph = Graph(max_amount=0, locked_max_y=None)
    with pytest.raises(ValueError):
        graph.y_max()


def test_highest_value_of_empty_graph_is_zero():
    assert Graph(max_amount=3).highest_value() == 0.0


def test_highest_value_ignores_padding():
    graph = Graph(max_amount=5)
    graph.push(-3.0)
    graph.push(-1.0)
    assert graph.highest_value() == -1.0


def test_highest_value_treats_nan_as_largest():
    graph = Graph(max_amount=3)
    graph.push(1.0)
    graph.push(math.nan)
    assert math.isnan(graph.highest_value())


def test_zero_width_graph_still_holds_one_point():
    graph = Graph(max_amount=0)
    graph.push(1.0)
    graph.push(2.0)
    assert graph.points == (2.0,)
    with pytest.raises(ValueError):
        graph.filled_points()


def test_shrinking_max_amount_makes_filled_points_fail_until_pushed():
    graph = Graph(max_amount=3)
    for value in (1.0, 2.0, 3.0):
        graph.push(value)
    graph.set_max_amount(2)
    with pytest.raises(ValueError):
        graph.filled_points()


def test_negative_max_amount_is_rejected():
    with pytest.raises(ValueError):
        Graph(max_amount=-1)
    graph = Graph(max_amount=1)
    with pytest.raises(ValueError):
        graph.set_max_amount(-2)