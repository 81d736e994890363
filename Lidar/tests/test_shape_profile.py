# -*- coding: utf-8 -*-
"""
Unit tests for the optimization-profile bounds.
"""

import pytest

from Lidar.src.engine.errors import EngineInitError, ShapeProfileError
from Lidar.src.engine.shape_profile import NUM_POINTS_INPUT, POINTS_INPUT, resolve_shape_profile


def test_bounds_for_static_export():
    points, num_points = resolve_shape_profile((1, 204800, 4))

    assert points.input_name == POINTS_INPUT
    assert points.min_shape == points.opt_shape == points.max_shape == (1, 204800, 4)
    assert num_points.input_name == NUM_POINTS_INPUT
    assert num_points.min_shape == num_points.opt_shape == num_points.max_shape == (1,)
    assert points.is_fixed and num_points.is_fixed


def test_dynamic_batch_and_width_are_pinned():
    """Batch is always 1 and the row width always 4, whatever the graph declares."""
    points, _ = resolve_shape_profile((-1, 25000, -1))
    assert points.opt_shape == (1, 25000, 4)


def test_dimension_bounds():
    points, _ = resolve_shape_profile((1, 1000, 4))
    assert points.dimension_bounds() == [(0, 1, 1, 1), (1, 1000, 1000, 1000), (2, 4, 4, 4)]


@pytest.mark.parametrize("shape", [(1, -1, 4), (1, 0, 4), (1, 4), (1, 1000, 4, 1)])
def test_unusable_shapes(shape):
    with pytest.raises(ShapeProfileError):
        resolve_shape_profile(shape)


def test_profile_error_is_fatal_init_error():
    assert issubclass(ShapeProfileError, EngineInitError)
