# -*- coding: utf-8 -*-
"""
Unit tests for point cloud loading and prediction files.
"""

import numpy as np
import pytest

from Lidar.src.boxes import OrientedBox
from Lidar.src.lidar_utils import (
    class_name,
    format_detection,
    list_point_files,
    load_points,
    prediction_path,
    save_predictions,
)

CLASSES = ["Vehicle", "Pedestrian", "Cyclist"]


@pytest.fixture
def cloud_file(tmp_path):
    points = np.arange(12, dtype=np.float32).reshape(3, 4)
    path = tmp_path / "000001.bin"
    points.tofile(path)
    return path


def test_load_points(cloud_file):
    points = load_points(cloud_file)
    assert points.shape == (3, 4)
    assert points.dtype == np.float32
    assert points[2, 3] == 11.0


def test_load_points_drops_partial_row(tmp_path):
    path = tmp_path / "partial.bin"
    np.arange(10, dtype=np.float32).tofile(path)
    assert load_points(path).shape == (2, 4)


def test_load_points_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_points(tmp_path / "nope.bin")


def test_list_point_files(tmp_path, cloud_file):
    (tmp_path / "000000.bin").write_bytes(b"")
    (tmp_path / "notes.txt").write_text("")

    assert [p.name for p in list_point_files(tmp_path)] == ["000000.bin", "000001.bin"]
    assert list_point_files(cloud_file) == [cloud_file]


def test_class_names():
    assert class_name(1, CLASSES) == "Pedestrian"
    assert class_name(7, CLASSES) == "class_7"


def test_format_detection():
    box = OrientedBox(1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 0.5, 2, 0.25)
    assert format_detection(box, CLASSES) == (
        "Cyclist, 1.000000, 2.000000, 3.000000, 4.000000, 5.000000, 6.000000, 0.500000, 0.250000"
    )


def test_save_predictions(tmp_path):
    boxes = [
        OrientedBox(1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 0.5, 2, 0.25),
        OrientedBox(0.0, 0.0, 0.0, 1.0, 1.0, 1.0, 0.0, 0, 0.5),
    ]
    out = save_predictions(boxes, tmp_path / "preds" / "000001.txt")

    lines = out.read_text().splitlines()
    assert lines == ["1.0 2.0 3.0 4.0 5.0 6.0 0.5 2 0.25", "0.0 0.0 0.0 1.0 1.0 1.0 0.0 0 0.5"]


def test_prediction_path(tmp_path):
    assert prediction_path("/data/kitti/000042.bin", tmp_path) == tmp_path / "000042.txt"
