# -*- coding: utf-8 -*-
"""
Centralized path and configuration manager for the PointPillars TensorRT project.
Loads paths and settings from config.yaml, ensuring portability and eliminating hardcoded values.
"""

from pathlib import Path
import yaml
import logging
from typing import Any, Dict

logger = logging.getLogger(__name__)


class PathManager:
    """Centralized manager for project paths and configurations."""

    # Calculate BASE_DIR relative to this file
    BASE_DIR = Path(__file__).resolve().parents[2]

    _instance = None

    def __new__(cls, *args, **kwargs):
        if cls._instance is None:
            cls._instance = super(PathManager, cls).__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self, config_file_name: str = "config.yaml"):
        if self._initialized:
            return

        config_path = self.BASE_DIR / "config" / config_file_name

        try:
            with open(config_path, 'r') as f:
                config = yaml.safe_load(f) or {}
        except FileNotFoundError:
            logger.error(f"Config file not found at: {config_path}")
            raise
        except yaml.YAMLError as e:
            logger.error(f"Error parsing YAML file: {e}")
            raise

        # Load directories
        self.DIRS = {key: self.BASE_DIR / Path(value) for key, value in config.get('dirs', {}).items()}
        # Load specific model paths (ONNX model, serialized engine)
        self.model_details = {key: self.BASE_DIR / Path(value) for key, value in config.get('model_details', {}).items()}
        # Load inference settings (precision, NMS, classes)
        self.inference = config.get('inference', {})

        self._initialized = True

    def get(self, key: str, *parts: str, create: bool = False) -> Path:
        """
        Get an absolute path from the 'dirs' section of config.yaml safely.
        """
        base_path = self.DIRS.get(key)

        if base_path is None:
            raise ValueError(
                f"Path key '{key}' not found in 'dirs'. Available keys: {list(self.DIRS.keys())}"
            )

        full_path = base_path
        if parts:
            full_path = base_path / Path(*parts)

        full_path = full_path.resolve()

        if create:
            full_path.mkdir(parents=True, exist_ok=True)
            logger.debug(f"Created directory: {full_path}")

        return full_path

    def get_model_detail(self, key: str, check_exists: bool = True) -> Path:
        """
        Get a specific model path from the 'model_details' section of config.yaml.
        """
        model_path = self.model_details.get(key)

        if model_path is None:
            raise ValueError(
                f"Model detail key '{key}' not found in 'model_details'. Available keys: {list(self.model_details.keys())}"
            )

        if check_exists and not model_path.exists():
            raise FileNotFoundError(
                f"Model file not found: {model_path}"
            )

        return model_path

    def get_inference_setting(self, key: str, default: Any = None) -> Any:
        """
        Get a setting from the 'inference' section of config.yaml.
        """
        return self.inference.get(key, default)

    def inference_settings(self) -> Dict[str, Any]:
        """Copy of the whole 'inference' section."""
        return dict(self.inference)

    def ensure_output_structure(self):
        """Create the entire output directory structure if it doesn't exist."""
        for key in ("output", "predictions", "logs", "engines"):
            self.get(key, create=True)

        logger.info("Output directory structure verified")

    def validate_environment(self) -> list[str]:
        """
        Validate that critical directories and files exist.
        """
        errors = []

        critical_dirs = ["lidar", "models", "configs"]
        for key in critical_dirs:
            path = self.DIRS.get(key)
            if path and not path.exists():
                errors.append(f"Missing critical directory: {path}")

        onnx_path = self.model_details.get("pointpillars_onnx")
        engine_path = self.model_details.get("pointpillars_engine")
        has_onnx = onnx_path is not None and onnx_path.exists()
        has_engine = engine_path is not None and engine_path.exists()
        if not has_onnx and not has_engine:
            errors.append(
                f"Neither the ONNX model ({onnx_path}) nor a serialized engine ({engine_path}) was found"
            )

        return errors


# Singleton instance
path_manager = PathManager()
