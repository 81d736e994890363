"""
Single-stream inference dispatch.

run() only enqueues work; outputs (and the layer profile) are valid after
synchronize(). One inference may be in flight per handle.
"""

import logging
from typing import Optional, Sequence

from .cache import ExecutionHandle
from .profiler import LayerProfile

logger = logging.getLogger(__name__)


class ExecutionService:
    def __init__(self, handle: ExecutionHandle, stream):
        """
        Args:
            handle: Ready engine + context from GraphCacheManager.resolve().
            stream: CUDA stream exposing `cuda_stream` (raw handle) and `synchronize()`,
                e.g. torch.cuda.Stream.
        """
        self.handle = handle
        self.stream = stream
        self._in_flight = False

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    def run(self, buffers: Sequence[int], profile: Optional[LayerProfile] = None) -> bool:
        """
        Enqueue one inference.

        Args:
            buffers: Device pointers in binding order
                (points, num_points, boxes out, box count out).
            profile: Accumulator for per-layer timings, filled once the stream is synchronized.

        Returns:
            True if the runtime accepted the work.
        """
        if self.handle.closed:
            logger.error("Inference requested on a released execution handle")
            return False
        if self._in_flight:
            logger.warning("Previous inference not synchronized, refusing to enqueue")
            return False
        if len(buffers) != len(self.handle.io_names):
            raise ValueError(
                f"Expected {len(self.handle.io_names)} buffers {self.handle.io_names}, got {len(buffers)}"
            )

        context = self.handle.context
        for name, shape in self.handle.input_shapes.items():
            if not context.set_input_shape(name, shape):
                logger.error(f"set_input_shape failed for {name} shape={shape}")
                return False

        for name, address in zip(self.handle.io_names, buffers):
            context.set_tensor_address(name, int(address))

        if profile is not None:
            self.handle.attach_profiler(profile)
        else:
            self.handle.detach_profiler()

        status = bool(context.execute_async_v3(stream_handle=self.stream.cuda_stream))
        if not status:
            logger.error("execute_async_v3 returned False")
        self._in_flight = status
        return status

    def synchronize(self):
        """Block until all work enqueued on the stream has completed."""
        self.stream.synchronize()
        self._in_flight = False
