# -*- coding: utf-8 -*-
"""
Environment validation script for the PointPillars TensorRT pipeline.
Verifies that the runtime stack and model files are in place before execution.
"""

import sys
from typing import List
import importlib.util

from config.utils.path_manager import path_manager


class EnvironmentValidator:
    """Complete validator for the inference environment."""

    def __init__(self):
        self.errors: List[str] = []
        self.warnings: List[str] = []
        self.info: List[str] = []

    def validate_all(self) -> bool:
        """
        Execute all validations.

        Returns:
            True if there are no critical errors
        """
        print("🔍 VALIDATING INFERENCE ENVIRONMENT\n")

        self.check_python_version()
        self.check_project_structure()
        self.check_dependencies()
        self.check_cuda()
        self.check_models()
        self.check_point_clouds()

        self.print_report()

        return len(self.errors) == 0

    def check_python_version(self):
        """Verify Python version."""
        required_version = (3, 9)
        current_version = sys.version_info[:2]

        if current_version < required_version:
            self.errors.append(
                f"Python {required_version[0]}.{required_version[1]}+ required. "
                f"Current: {current_version[0]}.{current_version[1]}"
            )
        else:
            self.info.append(
                f"✅ Python {current_version[0]}.{current_version[1]} detected"
            )

    def check_project_structure(self):
        """Verify project directory structure."""
        errors = path_manager.validate_environment()

        if errors:
            self.errors.extend(errors)
            return

        self.info.append("✅ Correct directory structure")
        try:
            path_manager.ensure_output_structure()
            self.info.append("✅ Output directories created/verified")
        except OSError as e:
            self.warnings.append(f"Could not create outputs: {e}")

    def check_dependencies(self):
        """Verify critical Python dependencies."""
        critical_deps = {
            'tensorrt': 'tensorrt',
            'torch': 'torch',
            'numpy': 'numpy',
            'cv2': 'opencv-python',
            'yaml': 'pyyaml',
        }

        optional_deps = {
            'tqdm': 'tqdm',
        }

        missing_critical = [pkg for mod, pkg in critical_deps.items() if not self._check_import(mod)]
        missing_optional = [pkg for mod, pkg in optional_deps.items() if not self._check_import(mod)]

        if missing_critical:
            self.errors.append(
                f"Missing critical dependencies: {', '.join(missing_critical)}\n"
                f"   Install with: pip install {' '.join(missing_critical)}"
            )
        else:
            self.info.append("✅ All critical dependencies installed")

        if missing_optional:
            self.warnings.append(
                f"Missing optional dependencies: {', '.join(missing_optional)}"
            )

    def check_cuda(self):
        """Verify CUDA availability and the TensorRT version."""
        try:
            import torch
        except ImportError:
            self.warnings.append("Could not verify CUDA (torch not installed)")
            return

        if not torch.cuda.is_available():
            self.errors.append("❌ CUDA not available - TensorRT inference needs a GPU")
            return

        device_name = torch.cuda.get_device_name(0)
        total_mem = torch.cuda.get_device_properties(0).total_memory / 1e9
        self.info.append(f"✅ CUDA available: {device_name} (CUDA {torch.version.cuda})")
        self.info.append(f"   GPU Memory: {total_mem:.1f} GB")

        try:
            import tensorrt as trt
            self.info.append(f"✅ TensorRT {trt.__version__}")
        except ImportError:
            pass

    def check_models(self):
        """Report whether the engine will be loaded or built on the next run."""
        engine_path = path_manager.get_model_detail("pointpillars_engine", check_exists=False)
        onnx_path = path_manager.get_model_detail("pointpillars_onnx", check_exists=False)

        if engine_path.exists():
            size_mb = engine_path.stat().st_size / 1e6
            self.info.append(f"✅ Engine cache found: {engine_path.name} ({size_mb:.1f} MB)")
        elif onnx_path.exists():
            self.warnings.append(
                f"⚠️  No engine cache at {engine_path}\n"
                f"   It will be built from {onnx_path.name} on the first run"
            )
        else:
            self.errors.append(f"No ONNX model at {onnx_path} and no engine cache at {engine_path}")

    def check_point_clouds(self):
        """Verify that there is something to run on."""
        data_dir = path_manager.get("data")
        if not data_dir.exists():
            self.warnings.append(f"⚠️  Data directory not found: {data_dir}")
            return

        count = len(list(data_dir.glob("*.bin")))
        if count:
            self.info.append(f"✅ {count} point clouds found in {data_dir}")
        else:
            self.warnings.append(f"⚠️  No .bin point clouds in {data_dir}")

    def _check_import(self, module_name: str) -> bool:
        """Verify if a module can be imported."""
        return importlib.util.find_spec(module_name) is not None

    def print_report(self):
        """Print final validation report."""
        print("\n" + "=" * 70)
        print("📊 VALIDATION REPORT")
        print("=" * 70 + "\n")

        if self.info:
            print("✅ INFORMATION:")
            for msg in self.info:
                print(f"   {msg}")
            print()

        if self.warnings:
            print("⚠️  WARNINGS:")
            for msg in self.warnings:
                for line in msg.split('\n'):
                    print(f"   {line}")
            print()

        if self.errors:
            print("❌ CRITICAL ERRORS:")
            for msg in self.errors:
                for line in msg.split('\n'):
                    print(f"   {line}")
            print()
            print("🛑 Please fix the errors before continuing.\n")
        else:
            print("🎉 Environment validated successfully! Ready to run.\n")

        print("=" * 70 + "\n")


def validate_environment() -> bool:
    """
    Main validation function.

    Returns:
        True if there are no critical errors
    """
    validator = EnvironmentValidator()
    return validator.validate_all()


def main():
    success = validate_environment()

    # Exit code for CI/CD
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
