class EngineInitError(RuntimeError):
    """Unrecoverable failure while building, loading or activating the TensorRT engine."""


class ShapeProfileError(EngineInitError):
    """The network does not declare a usable input shape for the optimization profile."""
