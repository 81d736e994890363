# -*- coding: utf-8 -*-
"""
Shared fixtures. TensorRT and CUDA objects are replaced by mocks so the
tests run without a GPU.
"""

from unittest.mock import MagicMock

import pytest

from Lidar.src.engine.backend import GraphBackend

IO_NAMES = ["points", "num_points", "output_boxes", "num_boxes"]
MAX_POINTS = 25000
MAX_BOXES = 393


@pytest.fixture
def fake_backend():
    """Backend whose build/load calls succeed."""
    backend = MagicMock(spec=GraphBackend)
    backend.parse_model.return_value = "network"
    backend.input_shape.return_value = (1, MAX_POINTS, 4)
    backend.build.return_value = b"serialized-engine"
    backend.deserialize.return_value = MagicMock(name="engine")
    backend.create_context.return_value = MagicMock(name="context")
    backend.io_tensor_names.return_value = list(IO_NAMES)
    backend.input_shapes.return_value = {"points": (1, MAX_POINTS, 4), "num_points": (1,)}
    backend.tensor_shape.return_value = (1, MAX_BOXES, 9)
    return backend


@pytest.fixture
def model_file(tmp_path):
    path = tmp_path / "pointpillars.onnx"
    path.write_bytes(b"onnx")
    return path
