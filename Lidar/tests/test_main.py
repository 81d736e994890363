# -*- coding: utf-8 -*-
"""
Unit tests for the command-line frame loop.
"""

from unittest.mock import MagicMock

import numpy as np
import pytest

import Lidar.main as cli
from config.utils.path_manager import path_manager
from Lidar.src.boxes import OrientedBox
from Lidar.src.engine.errors import EngineInitError
from Lidar.src.lidar_models import FrameResult, PointPillarsPipeline

CAR = OrientedBox(10.0, 5.0, -1.0, 1.8, 4.2, 1.6, 0.1, 0, 0.9)


@pytest.fixture
def data_dir(tmp_path):
    data_dir = tmp_path / "velodyne"
    data_dir.mkdir()
    for stem in ("000000", "000001"):
        np.zeros((2, 4), dtype=np.float32).tofile(data_dir / f"{stem}.bin")
    return data_dir


@pytest.fixture
def pipeline(monkeypatch):
    pipeline = MagicMock(name="pipeline")
    pipeline.__enter__.return_value = pipeline
    pipeline.__exit__.return_value = False
    pipeline.point_dims = 4
    pipeline.class_names = ["Vehicle"]
    monkeypatch.setattr(PointPillarsPipeline, "from_config", MagicMock(return_value=pipeline))
    return pipeline


@pytest.mark.parametrize("argv", [["-t", "1.5"], ["-t", "-0.1"], ["-n", "0"], ["-n", "-3"]])
def test_invalid_nms_flags_rejected(argv):
    with pytest.raises(SystemExit) as exc:
        cli.parse_args(argv)
    assert exc.value.code == 2


def test_boundary_nms_flags_accepted():
    args = cli.parse_args(["-t", "0", "-n", "1"])
    assert args.nms_iou_thresh == 0.0
    assert args.max_kept == 1


def test_all_frames_failed(pipeline, data_dir, tmp_path):
    pipeline.predict.return_value = FrameResult(ok=False)
    out = tmp_path / "preds"

    assert cli.run(cli.parse_args(["-l", str(data_dir), "-o", str(out)])) == 1
    assert not list(out.glob("*.txt"))


def test_partial_failure_still_succeeds(pipeline, data_dir, tmp_path):
    pipeline.predict.side_effect = [
        FrameResult(True, [CAR], raw_count=3, num_points=2, elapsed_ms=4.0),
        FrameResult(ok=False),
    ]
    out = tmp_path / "preds"

    assert cli.run(cli.parse_args(["-l", str(data_dir), "-o", str(out), "-t", "0.3"])) == 0
    assert (out / "000000.txt").read_text().split() == [str(v) for v in CAR.as_row()]
    assert not (out / "000001.txt").exists()
    assert PointPillarsPipeline.from_config.call_args.kwargs["nms_iou_threshold"] == 0.3


def test_no_frames(pipeline, tmp_path):
    assert cli.run(cli.parse_args(["-l", str(tmp_path), "-o", str(tmp_path / "preds")])) == 0
    pipeline.predict.assert_not_called()


def test_engine_failure_exits_with_status_one(monkeypatch, tmp_path):
    monkeypatch.setattr(cli, "setup_logging", MagicMock())
    monkeypatch.setattr(cli, "configure_external_loggers", MagicMock())
    monkeypatch.setattr(path_manager, "get", lambda key, *parts, create=False: tmp_path / key)
    monkeypatch.setattr(
        PointPillarsPipeline, "from_config", MagicMock(side_effect=EngineInitError("bad plan"))
    )

    with pytest.raises(SystemExit) as exc:
        cli.main(["-l", str(tmp_path)])
    assert exc.value.code == 1
