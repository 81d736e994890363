"""
Build-or-load lifecycle of the compiled TensorRT engine.

    UNRESOLVED --(cache file found)--------------------------------> LOADED
    UNRESOLVED --build()--> BUILT --persist()--> PERSISTED --------> LOADED

The serialized engine is written to the same path that is probed for a
cache hit, so the second run always loads instead of rebuilding.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from .backend import GraphBackend, Precision
from .errors import EngineInitError
from .shape_profile import POINTS_INPUT, resolve_shape_profile

logger = logging.getLogger(__name__)

DEFAULT_WORKSPACE_BYTES = 1 << 30


class GraphState(Enum):
    UNRESOLVED = "unresolved"
    BUILT = "built"
    PERSISTED = "persisted"
    LOADED = "loaded"


class ExecutionHandle:
    """Live engine + execution context. Owns both and releases them on close()."""

    def __init__(self, engine: Any, context: Any, backend: GraphBackend):
        self.engine = engine
        self.context = context
        self.backend = backend
        self.io_names: List[str] = list(backend.io_tensor_names(engine))
        self.input_shapes: Dict[str, Tuple[int, ...]] = dict(backend.input_shapes(engine))

    @property
    def closed(self) -> bool:
        return self.engine is None

    def tensor_shape(self, name: str) -> Tuple[int, ...]:
        return tuple(self.backend.tensor_shape(self.engine, name))

    @property
    def point_dims(self) -> int:
        return int(self.input_shapes[POINTS_INPUT][2])

    @property
    def max_points(self) -> int:
        return int(self.input_shapes[POINTS_INPUT][1])

    @property
    def max_boxes(self) -> int:
        # third binding: boxes out, (batch, max_boxes, 9)
        return int(self.tensor_shape(self.io_names[2])[1])

    def attach_profiler(self, profile):
        self.backend.attach_profiler(self.context, profile)

    def detach_profiler(self):
        self.backend.detach_profiler(self.context)

    def close(self):
        if self.closed:
            return
        # context before engine
        self.backend.release_context(self.context)
        self.context = None
        self.engine = None
        logger.debug("Execution handle released")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class GraphCacheManager:
    def __init__(
        self,
        model_path: Union[str, Path],
        cache_path: Union[str, Path],
        backend: GraphBackend,
        precision: Union[str, Precision] = Precision.FP32,
        workspace_bytes: int = DEFAULT_WORKSPACE_BYTES,
    ):
        self.model_path = Path(model_path)
        self.cache_path = Path(cache_path)
        self.backend = backend
        self.precision = Precision.parse(precision)
        self.workspace_bytes = workspace_bytes
        self.state = GraphState.UNRESOLVED
        self._handle: Optional[ExecutionHandle] = None

    @property
    def cache_exists(self) -> bool:
        return self.cache_path.is_file()

    def resolve(self) -> ExecutionHandle:
        """Return a ready-to-run handle, loading the cached engine or building a new one."""
        if self._handle is not None:
            return self._handle

        if self.cache_exists:
            engine = self.load_cached()
        else:
            blob = self.build()
            self.persist(blob)
            engine = self._deserialize(blob)

        return self._activate(engine)

    def load_cached(self) -> Any:
        logger.info(f"Loading existing TRT engine: {self.cache_path}")
        try:
            blob = self.cache_path.read_bytes()
        except OSError as e:
            raise EngineInitError(f"Can't read engine cache {self.cache_path}: {e}") from e

        if not blob:
            raise EngineInitError(f"Engine cache is empty: {self.cache_path}")
        return self._deserialize(blob)

    def build(self) -> bytes:
        if self.state is not GraphState.UNRESOLVED:
            raise EngineInitError(f"Cannot build engine from state {self.state.value}")

        logger.info(f"Loading model: {self.model_path}")
        if not self.model_path.is_file():
            raise EngineInitError(f"Model file not found: {self.model_path}")

        logger.info("Building TRT engine from the model (this can take several minutes)")
        network = self.backend.parse_model(str(self.model_path))
        if network is None:
            raise EngineInitError(
                f"Failed to parse ONNX model {self.model_path}, "
                "please check the onnx version and the ops supported by TensorRT"
            )

        bounds = resolve_shape_profile(self.backend.input_shape(network, POINTS_INPUT))
        for bound in bounds:
            logger.debug(f"Profile {bound.input_name}: {bound.dimension_bounds()}")

        if self.precision is Precision.FP16:
            logger.info("Enabled FP16 data type!")

        blob = self.backend.build(network, bounds, self.precision, self.workspace_bytes)
        if not blob:
            raise EngineInitError("Engine build failed: builder returned no serialized engine")

        self.state = GraphState.BUILT
        return bytes(blob)

    def persist(self, blob: bytes):
        if self.state is not GraphState.BUILT:
            raise EngineInitError(f"Cannot persist engine from state {self.state.value}")

        try:
            self.cache_path.parent.mkdir(parents=True, exist_ok=True)
            self.cache_path.write_bytes(blob)
        except OSError as e:
            raise EngineInitError(f"Can't store TRT cache at {self.cache_path}: {e}") from e

        self.state = GraphState.PERSISTED
        logger.info(f"Serialized engine ({len(blob) / 1e6:.1f} MB) saved to: {self.cache_path}")

    def _deserialize(self, blob: bytes) -> Any:
        engine = self.backend.deserialize(blob)
        if engine is None:
            raise EngineInitError(f"Failed to deserialize engine ({len(blob)} bytes)")
        return engine

    def _activate(self, engine: Any) -> ExecutionHandle:
        context = self.backend.create_context(engine)
        if context is None:
            raise EngineInitError("Failed to create execution context")

        self._handle = ExecutionHandle(engine, context, self.backend)
        self.state = GraphState.LOADED
        logger.info(f"Engine ready, bindings: {self._handle.io_names}")
        return self._handle
