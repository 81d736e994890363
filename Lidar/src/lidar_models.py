import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Union

import numpy as np

from config.utils.path_manager import path_manager

from .boxes import OrientedBox, decode_detections
from .engine.cache import ExecutionHandle, GraphCacheManager
from .engine.errors import EngineInitError
from .engine.execution import ExecutionService
from .engine.profiler import LayerProfile
from .nms import suppress

logger = logging.getLogger(__name__)


@dataclass
class FrameResult:
    ok: bool
    detections: List[OrientedBox] = field(default_factory=list)
    raw_count: int = 0
    num_points: int = 0
    elapsed_ms: float = 0.0


class PointPillarsPipeline:
    """Engine + buffers + post-processing for one stream of point clouds."""

    def __init__(
        self,
        handle: ExecutionHandle,
        buffers,
        service: ExecutionService,
        iou_threshold: float = 0.01,
        max_kept: Optional[int] = 100,
        overlap: str = "bev",
        class_names: Sequence[str] = (),
    ):
        self.handle = handle
        self.buffers = buffers
        self.service = service
        self.iou_threshold = iou_threshold
        self.max_kept = max_kept
        self.overlap = overlap
        self.class_names = list(class_names)

    @classmethod
    def from_paths(
        cls,
        model_path: Union[str, Path],
        engine_path: Union[str, Path],
        precision: str = "fp32",
        device: str = "cuda:0",
        workspace_mb: int = 1024,
        point_dims: Optional[int] = None,
        **nms_kwargs,
    ) -> "PointPillarsPipeline":
        # GPU stack is only needed once an engine is actually created
        from .engine.buffers import DeviceBuffers
        from .engine.trt_backend import TensorRTBackend

        manager = GraphCacheManager(
            model_path,
            engine_path,
            backend=TensorRTBackend(),
            precision=precision,
            workspace_bytes=int(workspace_mb) * (1 << 20),
        )
        handle = manager.resolve()
        if point_dims is not None and int(point_dims) != handle.point_dims:
            handle.close()
            raise EngineInitError(
                f"Configured point_dims={point_dims} but the engine expects {handle.point_dims} values per point"
            )
        buffers = DeviceBuffers(handle.max_points, handle.point_dims, handle.max_boxes, device=device)
        service = ExecutionService(handle, buffers.stream)
        return cls(handle, buffers, service, **nms_kwargs)

    @classmethod
    def from_config(cls, **overrides) -> "PointPillarsPipeline":
        """Build from config.yaml; keyword arguments override the 'inference' section."""
        settings = path_manager.inference_settings()
        settings.update({k: v for k, v in overrides.items() if v is not None})

        model_path = settings.pop("model_path", None) or path_manager.get_model_detail("pointpillars_onnx", check_exists=False)
        engine_path = settings.pop("engine_path", None) or path_manager.get_model_detail("pointpillars_engine", check_exists=False)

        return cls.from_paths(
            model_path,
            engine_path,
            precision=settings.get("precision", "fp32"),
            device=settings.get("device", "cuda:0"),
            workspace_mb=settings.get("workspace_mb", 1024),
            point_dims=settings.get("point_dims"),
            iou_threshold=settings.get("nms_iou_threshold", 0.01),
            max_kept=settings.get("max_kept", 100),
            overlap=settings.get("overlap", "bev"),
            class_names=settings.get("class_names", ()),
        )

    @property
    def point_dims(self) -> int:
        return self.handle.point_dims

    def predict(self, points: np.ndarray, profile: Optional[LayerProfile] = None) -> FrameResult:
        start = time.perf_counter()

        num_points = self.buffers.load_points(points)
        if not self.service.run(self.buffers.pointers(), profile=profile):
            self.service.synchronize()
            return FrameResult(ok=False, num_points=num_points)
        self.service.synchronize()

        count, raw = self.buffers.read_detections()
        boxes = decode_detections(count, raw)
        kept = suppress(boxes, self.iou_threshold, self.max_kept, overlap=self.overlap)

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.debug(f"{num_points} points -> {count} raw boxes -> {len(kept)} after NMS ({elapsed_ms:.2f} ms)")
        return FrameResult(True, kept, count, num_points, elapsed_ms)

    def close(self):
        self.handle.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
