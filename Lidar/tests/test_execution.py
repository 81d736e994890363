# -*- coding: utf-8 -*-
"""
Unit tests for the single-stream execution service.
"""

from unittest.mock import MagicMock, call

import pytest

from Lidar.src.engine.cache import GraphCacheManager
from Lidar.src.engine.execution import ExecutionService
from Lidar.src.engine.profiler import LayerProfile

POINTERS = [1000, 2000, 3000, 4000]


@pytest.fixture
def handle(fake_backend, model_file, tmp_path):
    handle = GraphCacheManager(model_file, tmp_path / "pp.engine", fake_backend).resolve()
    handle.context.set_input_shape.return_value = True
    handle.context.execute_async_v3.return_value = True
    return handle


@pytest.fixture
def stream():
    stream = MagicMock()
    stream.cuda_stream = 0xBEEF
    return stream


def test_run_binds_in_order_and_enqueues(handle, stream):
    service = ExecutionService(handle, stream)
    assert service.run(POINTERS) is True

    ctx = handle.context
    ctx.set_tensor_address.assert_has_calls([
        call("points", 1000),
        call("num_points", 2000),
        call("output_boxes", 3000),
        call("num_boxes", 4000),
    ])
    ctx.set_input_shape.assert_any_call("points", (1, 25000, 4))
    ctx.set_input_shape.assert_any_call("num_points", (1,))
    ctx.execute_async_v3.assert_called_once_with(stream_handle=0xBEEF)
    assert service.in_flight


def test_failure_is_reported_as_status(handle, stream):
    handle.context.execute_async_v3.return_value = False
    service = ExecutionService(handle, stream)

    assert service.run(POINTERS) is False
    assert not service.in_flight


def test_one_inference_in_flight(handle, stream):
    service = ExecutionService(handle, stream)
    assert service.run(POINTERS)
    assert service.run(POINTERS) is False
    assert handle.context.execute_async_v3.call_count == 1

    service.synchronize()
    stream.synchronize.assert_called_once()
    assert service.run(POINTERS)
    assert handle.context.execute_async_v3.call_count == 2


def test_profile_is_attached(handle, stream, fake_backend):
    profile = LayerProfile()
    service = ExecutionService(handle, stream)

    service.run(POINTERS, profile=profile)
    fake_backend.attach_profiler.assert_called_once_with(handle.context, profile)

    service.synchronize()
    service.run(POINTERS)
    fake_backend.detach_profiler.assert_called_once_with(handle.context)


def test_buffer_count_must_match_bindings(handle, stream):
    service = ExecutionService(handle, stream)
    with pytest.raises(ValueError):
        service.run(POINTERS[:3])


def test_shape_rejection(handle, stream):
    handle.context.set_input_shape.return_value = False
    service = ExecutionService(handle, stream)

    assert service.run(POINTERS) is False
    handle.context.execute_async_v3.assert_not_called()


def test_released_handle(handle, stream):
    service = ExecutionService(handle, stream)
    handle.close()
    assert service.run(POINTERS) is False
