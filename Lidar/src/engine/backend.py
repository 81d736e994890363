from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .shape_profile import ShapeBound


class Precision(str, Enum):
    FP32 = "fp32"
    FP16 = "fp16"

    @classmethod
    def parse(cls, value) -> "Precision":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(
                f"Precision '{value}' not recognized. Available: {[p.value for p in cls]}"
            ) from None


class GraphBackend(ABC):
    """
    Accelerator runtime used by the GraphCacheManager.

    Failures are reported the way the runtime reports them: a None return
    value. The cache manager turns those into EngineInitError.
    """

    @abstractmethod
    def parse_model(self, model_path: str) -> Optional[Any]:
        """Parse the ONNX model into a network definition."""
        pass

    @abstractmethod
    def input_shape(self, network: Any, name: str) -> Tuple[int, ...]:
        """Declared shape of a network input."""
        pass

    @abstractmethod
    def build(
        self,
        network: Any,
        bounds: Sequence[ShapeBound],
        precision: Precision,
        workspace_bytes: int,
    ) -> Optional[bytes]:
        """Compile the network and return the serialized engine."""
        pass

    @abstractmethod
    def deserialize(self, blob: bytes) -> Optional[Any]:
        pass

    @abstractmethod
    def create_context(self, engine: Any) -> Optional[Any]:
        pass

    @abstractmethod
    def io_tensor_names(self, engine: Any) -> List[str]:
        """Engine input/output tensor names in binding order."""
        pass

    @abstractmethod
    def input_shapes(self, engine: Any) -> Dict[str, Tuple[int, ...]]:
        """Operating shape (opt shape of profile 0) of every engine input."""
        pass

    @abstractmethod
    def tensor_shape(self, engine: Any, name: str) -> Tuple[int, ...]:
        pass

    @abstractmethod
    def attach_profiler(self, context: Any, profile: Any):
        pass

    @abstractmethod
    def detach_profiler(self, context: Any):
        pass

    @abstractmethod
    def release_context(self, context: Any):
        """Drop per-context state (profiler hooks) before the context is destroyed."""
        pass
