"""
Optimization-profile bounds for the PointPillars inputs.

The ONNX graph declares `points` as (batch, max_points, 4) and `num_points`
as (batch,). Both are marked dynamic, but the engine is compiled for a single
operating shape: min, opt and max are identical.
"""

from dataclasses import dataclass
from typing import List, Sequence, Tuple

from .errors import ShapeProfileError

POINTS_INPUT = "points"
NUM_POINTS_INPUT = "num_points"
POINT_DIMS = 4


@dataclass(frozen=True)
class ShapeBound:
    input_name: str
    min_shape: Tuple[int, ...]
    opt_shape: Tuple[int, ...]
    max_shape: Tuple[int, ...]

    def dimension_bounds(self) -> List[Tuple[int, int, int, int]]:
        """(dimension_index, min_extent, opt_extent, max_extent) for each dimension."""
        return [
            (index, lo, opt, hi)
            for index, (lo, opt, hi) in enumerate(zip(self.min_shape, self.opt_shape, self.max_shape))
        ]

    @property
    def is_fixed(self) -> bool:
        return self.min_shape == self.opt_shape == self.max_shape


def resolve_shape_profile(points_shape: Sequence[int], point_dims: int = POINT_DIMS) -> List[ShapeBound]:
    """
    Derive the profile bounds from the declared `points` input shape.

    Args:
        points_shape: Shape reported by the parsed network for `points`.
        point_dims: Row width of the point cloud (x, y, z, intensity).

    Returns:
        Bounds for `points` and `num_points`, in that order.
    """
    if len(points_shape) != 3:
        raise ShapeProfileError(
            f"Input '{POINTS_INPUT}' must be rank 3 (batch, points, dims), got {tuple(points_shape)}"
        )

    max_points = int(points_shape[1])
    if max_points <= 0:
        raise ShapeProfileError(
            f"Input '{POINTS_INPUT}' has no fixed point count ({tuple(points_shape)}); "
            "export the ONNX model with a static max_points dimension"
        )

    points = (1, max_points, point_dims)
    num_points = (1,)
    return [
        ShapeBound(POINTS_INPUT, points, points, points),
        ShapeBound(NUM_POINTS_INPUT, num_points, num_points, num_points),
    ]
