"""
Oriented 3D boxes and decoding of the raw PointPillars output buffer.
"""

from dataclasses import dataclass
from typing import List, Union

import numpy as np

# x, y, z, w, l, h, heading, class_id, score
BOX_STRIDE = 9


@dataclass(frozen=True)
class OrientedBox:
    x: float
    y: float
    z: float
    w: float
    l: float
    h: float
    heading: float
    class_id: int
    score: float

    @property
    def footprint_area(self) -> float:
        return self.w * self.l

    @property
    def volume(self) -> float:
        return self.w * self.l * self.h

    def as_row(self) -> list:
        return [self.x, self.y, self.z, self.w, self.l, self.h,
                self.heading, self.class_id, self.score]


class DetectionBuffer:
    """
    Typed view over the flat float32 box output of the network.

    The buffer holds up to `capacity` rows of BOX_STRIDE floats. It is
    allocated once and overwritten by every inference call, so rows must be
    decoded before the next call is issued.
    """

    def __init__(self, data: np.ndarray, capacity: int = None, stride: int = BOX_STRIDE):
        flat = np.asarray(data, dtype=np.float32).reshape(-1)
        max_rows = flat.size // stride
        if capacity is None:
            capacity = max_rows
        if capacity < 0 or capacity > max_rows:
            raise ValueError(
                f"Capacity {capacity} does not fit in a buffer of {flat.size} floats "
                f"(stride {stride})"
            )
        self.stride = stride
        self.capacity = capacity
        self._rows = flat[:capacity * stride].reshape(capacity, stride)

    @classmethod
    def allocate(cls, capacity: int) -> "DetectionBuffer":
        return cls(np.zeros(capacity * BOX_STRIDE, dtype=np.float32), capacity)

    def rows(self, count: int) -> np.ndarray:
        """Return the first `count` rows, checking the count against the capacity."""
        count = int(count)
        if count < 0 or count > self.capacity:
            raise ValueError(
                f"Detection count {count} outside buffer capacity [0, {self.capacity}]"
            )
        return self._rows[:count]

    def write(self, rows: np.ndarray):
        """Copy rows into the head of the buffer (host-side fill, used for replay and tests)."""
        rows = np.asarray(rows, dtype=np.float32).reshape(-1, self.stride)
        if len(rows) > self.capacity:
            raise ValueError(f"{len(rows)} rows exceed buffer capacity {self.capacity}")
        self._rows[:len(rows)] = rows
        return len(rows)


def decode_detections(count: int, buffer: Union[DetectionBuffer, np.ndarray]) -> List[OrientedBox]:
    """
    Convert the network output into oriented boxes.

    Args:
        count: Number of valid rows written by the inference pass.
        buffer: DetectionBuffer or flat float array with a stride of 9.

    Returns:
        Exactly `count` OrientedBox records, in buffer order.
    """
    if not isinstance(buffer, DetectionBuffer):
        buffer = DetectionBuffer(buffer)

    boxes = []
    for row in buffer.rows(count):
        x, y, z, w, l, h, heading, class_id, score = row.tolist()
        boxes.append(OrientedBox(x, y, z, w, l, h, heading, int(class_id), score))
    return boxes
