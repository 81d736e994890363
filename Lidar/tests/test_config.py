# -*- coding: utf-8 -*-
"""
Unit tests for the configuration and CLI plumbing.
"""

import logging

import pytest

from config.logging_config import get_logger, quiet_logger, setup_logging
from config.utils.path_manager import PathManager, path_manager
from Lidar.main import parse_args


def test_path_manager_is_singleton():
    assert PathManager() is path_manager


def test_inference_settings():
    assert path_manager.get_inference_setting("point_dims") == 4
    assert path_manager.get_inference_setting("overlap") == "bev"
    assert path_manager.get_inference_setting("missing", default=3) == 3
    assert path_manager.get_inference_setting("class_names")[0] == "Vehicle"


def test_engine_and_model_paths():
    engine = path_manager.get_model_detail("pointpillars_engine", check_exists=False)
    assert engine.suffix == ".engine"
    assert engine.is_absolute()
    with pytest.raises(ValueError):
        path_manager.get_model_detail("centerpoint")


def test_unknown_dir_key():
    with pytest.raises(ValueError):
        path_manager.get("bdd100k")


def test_setup_logging_writes_file(tmp_path):
    logger = setup_logging(log_dir=tmp_path, console=False, name="pp_test")
    logger.info("engine ready")
    for handler in logger.handlers:
        handler.flush()

    assert "engine ready" in next(tmp_path.glob("pointpillars_*.log")).read_text()


def test_quiet_logger_restores_level():
    logger = get_logger("pp_quiet", level=logging.DEBUG)
    with quiet_logger(logger):
        assert logger.level == logging.WARNING
    assert logger.level == logging.DEBUG


def test_cli_flags():
    args = parse_args(["-m", "pp.onnx", "-e", "pp.engine", "-d", "fp16", "-t", "0.2", "-n", "50",
                       "-c", "Vehicle,Pedestrian", "-p"])
    assert args.model == "pp.onnx"
    assert args.engine == "pp.engine"
    assert args.data_type == "fp16"
    assert args.nms_iou_thresh == 0.2
    assert args.max_kept == 50
    assert args.class_names == "Vehicle,Pedestrian"
    assert args.profile


def test_cli_defaults_come_from_config():
    args = parse_args([])
    assert args.model is None and args.engine is None and args.data_type is None
