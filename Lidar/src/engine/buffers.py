"""
CUDA tensors bound to the PointPillars engine, allocated once per pipeline.
"""

import logging
from typing import List, Tuple

import numpy as np
import torch

from ..boxes import BOX_STRIDE, DetectionBuffer

logger = logging.getLogger(__name__)


class DeviceBuffers:
    def __init__(self, max_points: int, point_dims: int, max_boxes: int, device: str = "cuda:0"):
        self.device = torch.device(device)
        self.max_points = max_points
        self.point_dims = point_dims
        self.max_boxes = max_boxes
        self.stream = torch.cuda.Stream(device=self.device)

        # inputs, written by load_points()
        self.points = torch.zeros((1, max_points, point_dims), dtype=torch.float32, device=self.device)
        self.num_points = torch.zeros((1,), dtype=torch.int32, device=self.device)
        # outputs, overwritten by every inference
        self.boxes = torch.zeros((1, max_boxes, BOX_STRIDE), dtype=torch.float32, device=self.device)
        self.box_count = torch.zeros((1,), dtype=torch.int32, device=self.device)

        self.host_boxes = DetectionBuffer.allocate(max_boxes)
        logger.debug(
            f"Allocated buffers: points={tuple(self.points.shape)} boxes={tuple(self.boxes.shape)} on {self.device}"
        )

    def load_points(self, points: np.ndarray) -> int:
        """Copy a (N, >=point_dims) float array into the input tensors. Returns the row count used."""
        points = np.ascontiguousarray(points[:, :self.point_dims], dtype=np.float32)
        count = len(points)
        if count > self.max_points:
            logger.warning(f"Point cloud has {count} points, truncating to {self.max_points}")
            count = self.max_points

        with torch.cuda.stream(self.stream):
            self.points[0, :count].copy_(torch.from_numpy(points[:count]))
            self.num_points.fill_(count)
        return count

    def pointers(self) -> List[int]:
        """Device addresses in binding order."""
        return [t.data_ptr() for t in (self.points, self.num_points, self.boxes, self.box_count)]

    def read_detections(self) -> Tuple[int, DetectionBuffer]:
        """Host copy of the outputs. Only valid after the stream was synchronized."""
        count = int(self.box_count.item())
        self.host_boxes.write(self.boxes[0].cpu().numpy())
        return count, self.host_boxes
