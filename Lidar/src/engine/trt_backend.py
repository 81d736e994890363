"""
TensorRT implementation of the graph backend (TensorRT 10 tensor API).
"""

import logging
from typing import Any, Dict, List, NamedTuple, Optional, Sequence, Tuple

import tensorrt as trt

from .backend import GraphBackend, Precision
from .errors import EngineInitError, ShapeProfileError
from .shape_profile import ShapeBound

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    trt.ILogger.Severity.INTERNAL_ERROR: logging.CRITICAL,
    trt.ILogger.Severity.ERROR: logging.ERROR,
    trt.ILogger.Severity.WARNING: logging.WARNING,
    trt.ILogger.Severity.INFO: logging.INFO,
    trt.ILogger.Severity.VERBOSE: logging.DEBUG,
}


class TrtLogger(trt.ILogger):
    """Forwards TensorRT messages to the 'tensorrt' Python logger."""

    def __init__(self, min_severity=trt.ILogger.Severity.WARNING):
        trt.ILogger.__init__(self)
        self.min_severity = min_severity
        self._logger = logging.getLogger("tensorrt")

    def log(self, severity, msg):
        # lower value = more severe
        if int(severity) <= int(self.min_severity):
            self._logger.log(_LOG_LEVELS.get(severity, logging.INFO), msg)


class _ProfilerBridge(trt.IProfiler):
    def __init__(self):
        trt.IProfiler.__init__(self)
        self.target = None

    def report_layer_time(self, layer_name, ms):
        if self.target is not None:
            self.target.report_layer_time(layer_name, ms)


class ParsedNetwork(NamedTuple):
    builder: Any
    network: Any
    parser: Any


class TensorRTBackend(GraphBackend):
    def __init__(self, min_severity=trt.ILogger.Severity.WARNING):
        self.trt_logger = TrtLogger(min_severity)
        # PointPillars relies on the voxel generator / scatter / decode plugins
        trt.init_libnvinfer_plugins(self.trt_logger, "")
        self.runtime = trt.Runtime(self.trt_logger)
        if self.runtime is None:
            raise EngineInitError("TensorRT runtime could not be created")
        self._profilers: Dict[int, _ProfilerBridge] = {}

    def parse_model(self, model_path: str) -> Optional[ParsedNetwork]:
        builder = trt.Builder(self.trt_logger)
        network = builder.create_network(0)
        parser = trt.OnnxParser(network, self.trt_logger)

        if not parser.parse_from_file(model_path):
            for i in range(parser.num_errors):
                logger.error(f"ONNX parser: {parser.get_error(i)}")
            return None
        return ParsedNetwork(builder, network, parser)

    def input_shape(self, network: ParsedNetwork, name: str) -> Tuple[int, ...]:
        inputs = [network.network.get_input(i) for i in range(network.network.num_inputs)]
        for tensor in inputs:
            if tensor.name == name:
                return tuple(tensor.shape)
        raise ShapeProfileError(
            f"Network has no input named '{name}', inputs are {[t.name for t in inputs]}"
        )

    def build(
        self,
        network: ParsedNetwork,
        bounds: Sequence[ShapeBound],
        precision: Precision,
        workspace_bytes: int,
    ) -> Optional[bytes]:
        builder = network.builder
        config = builder.create_builder_config()
        config.set_memory_pool_limit(trt.MemoryPoolType.WORKSPACE, workspace_bytes)
        if precision is Precision.FP16:
            config.set_flag(trt.BuilderFlag.FP16)

        profile = builder.create_optimization_profile()
        for bound in bounds:
            profile.set_shape(bound.input_name, bound.min_shape, bound.opt_shape, bound.max_shape)
        config.add_optimization_profile(profile)

        serialized = builder.build_serialized_network(network.network, config)
        if serialized is None:
            return None
        return bytes(serialized)

    def deserialize(self, blob: bytes) -> Optional[Any]:
        return self.runtime.deserialize_cuda_engine(blob)

    def create_context(self, engine: Any) -> Optional[Any]:
        return engine.create_execution_context()

    def io_tensor_names(self, engine: Any) -> List[str]:
        return [engine.get_tensor_name(i) for i in range(engine.num_io_tensors)]

    def input_shapes(self, engine: Any) -> Dict[str, Tuple[int, ...]]:
        shapes = {}
        for name in self.io_tensor_names(engine):
            if engine.get_tensor_mode(name) != trt.TensorIOMode.INPUT:
                continue
            shape = tuple(engine.get_tensor_shape(name))
            if any(d < 0 for d in shape):
                _, opt, _ = engine.get_tensor_profile_shape(name, 0)
                shape = tuple(opt)
            shapes[name] = tuple(int(d) for d in shape)
        return shapes

    def tensor_shape(self, engine: Any, name: str) -> Tuple[int, ...]:
        return tuple(int(d) for d in engine.get_tensor_shape(name))

    def attach_profiler(self, context: Any, profile: Any):
        bridge = self._profilers.get(id(context))
        if bridge is None:
            bridge = self._profilers[id(context)] = _ProfilerBridge()
        bridge.target = profile
        context.profiler = bridge

    def detach_profiler(self, context: Any):
        bridge = self._profilers.get(id(context))
        if bridge is not None:
            bridge.target = None

    def release_context(self, context: Any):
        bridge = self._profilers.pop(id(context), None)
        if bridge is not None:
            bridge.target = None
