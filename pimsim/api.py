"""
PIM runtime function surface.

This module acts as a facade over the buffer model, copy engine and kernel
library. Every call reports its outcome as a Status; runtime errors never
escape. Constructors return the new object, or None when creation failed.

Example:
    from pimsim import api
    from pimsim.types import MemType, Precision

    api.initialize()
    x = api.create_bo(256, 1, 1, 1, Precision.FP16, MemType.DEVICE)
    y = api.create_bo(256, 1, 1, 1, Precision.FP16, MemType.DEVICE)
    api.execute_relu(y, x)
    api.destroy_bo(x)
    api.destroy_bo(y)
    api.deinitialize()
"""

import functools
import logging
from typing import Optional, Tuple

from pimsim import kernels
from pimsim.config import RuntimeConfig, load_config
from pimsim.errors import PimError
from pimsim.hal.simulator import SimulatorDevice
from pimsim.runtime import buffer as _buffer
from pimsim.runtime import descriptor as _descriptor
from pimsim.runtime import memcpy as _memcpy
from pimsim.runtime.buffer import BufferObject
from pimsim.runtime.descriptor import Descriptor
from pimsim.runtime.device import PimDevice
from pimsim.runtime.memcpy import Copy3D
from pimsim.types import (
    MemCpyType, MemFlag, MemType, OpType, Precision, RuntimeType, Status,
)

logger = logging.getLogger(__name__)

_config = RuntimeConfig()
_device: PimDevice = SimulatorDevice()


def _status_call(fn):
    """Run `fn` and map its outcome to a Status."""
    @functools.wraps(fn)
    def wrapper(*args, **kwargs) -> Status:
        try:
            fn(*args, **kwargs)
        except PimError as exc:
            logger.warning("%s failed: %s", fn.__name__, exc)
            return exc.status
        return Status.SUCCESS
    return wrapper


def _handle_call(fn):
    """Run a constructor and return its result, or None on failure."""
    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except PimError as exc:
            logger.warning("%s failed: %s", fn.__name__, exc)
            return None
    return wrapper


# ----------------------------------------------------------------------------
# Process state
# ----------------------------------------------------------------------------

def initialize(rt_type: RuntimeType = RuntimeType.HIP,
               precision: Precision = Precision.FP16,
               config: Optional[RuntimeConfig] = None) -> Status:
    """
    Apply the runtime configuration. Buffers created earlier stay valid.

    Args:
        rt_type: Accepted for parity with hardware runtimes
        precision: Accepted for parity with hardware runtimes
        config: Explicit configuration, or None to read PIMSIM_* variables
    """
    global _config
    _config = config or load_config()
    logging.getLogger("pimsim").setLevel(_config.log_level)
    _device.allocator.capacity = _config.host_memory_limit
    logger.debug("initialized (%s, %s)", rt_type.value, precision.value)
    return Status.SUCCESS


def deinitialize() -> Status:
    return Status.SUCCESS


def set_device(device_id: int) -> Status:
    # Single simulated device; selection has no effect.
    logger.debug("set_device(%d)", device_id)
    return Status.SUCCESS


def get_device() -> PimDevice:
    return _device


def use_device(device: PimDevice) -> PimDevice:
    """Route subsequent calls to `device`. Returns the previous device."""
    global _device
    previous, _device = _device, device
    return previous


def get_config() -> RuntimeConfig:
    return _config


# ----------------------------------------------------------------------------
# Buffer objects and descriptors
# ----------------------------------------------------------------------------

@_handle_call
def create_bo(w: int, h: int, c: int, n: int,
              precision: Precision = Precision.FP16,
              mem_type: MemType = MemType.HOST,
              user_ptr=None) -> Optional[BufferObject]:
    shape = _buffer.make_shape(w, h, c, n)
    return _buffer.create_buffer(shape, precision, mem_type, _device.allocator, user_ptr=user_ptr)


@_handle_call
def create_bo_from_desc(desc: Descriptor, mem_type: MemType = MemType.HOST,
                        mem_flag: MemFlag = MemFlag.ELT_OP,
                        user_ptr=None) -> Optional[BufferObject]:
    return _descriptor.create_buffer_from_descriptor(
        desc, mem_type, _device.allocator, mem_flag=mem_flag, user_ptr=user_ptr)


@_status_call
def destroy_bo(bo: BufferObject) -> Status:
    _buffer.destroy_buffer(bo)


@_handle_call
def create_desc(n: int, c: int, h: int, w: int,
                precision: Precision = Precision.FP16,
                op_type: OpType = OpType.DUMMY) -> Optional[Descriptor]:
    return _descriptor.create_descriptor(n, c, h, w, precision, op_type)


def destroy_desc(desc: Descriptor) -> Status:
    return Status.SUCCESS


# ----------------------------------------------------------------------------
# Raw memory
# ----------------------------------------------------------------------------

def alloc_memory(size: int, mem_type: MemType = MemType.HOST) -> Tuple[Status, object]:
    """Allocate `size` raw bytes. Returns (status, block); block is None on failure."""
    try:
        return Status.SUCCESS, _device.allocator.alloc(size)
    except PimError as exc:
        logger.warning("alloc_memory failed: %s", exc)
        return exc.status, None


@_status_call
def alloc_bo_memory(bo: BufferObject) -> Status:
    """Give `bo` fresh owned memory, releasing what it owned before."""
    _buffer.reallocate_buffer(bo, _device.allocator)


def free_memory(block, mem_type: MemType = MemType.HOST) -> Status:
    if block is not None and _device.allocator.free(block) is None:
        logger.debug("free_memory: block not owned by the device allocator")
    return Status.SUCCESS


@_status_call
def free_bo_memory(bo: BufferObject) -> Status:
    _buffer.free_buffer_memory(bo)


# ----------------------------------------------------------------------------
# Copies
# ----------------------------------------------------------------------------

@_status_call
def copy_memory(dst, src, size: int, kind: MemCpyType = MemCpyType.HOST_TO_HOST) -> Status:
    _memcpy.copy_flat(dst, src, size, kind)


@_status_call
def copy_bo(dst: BufferObject, src: BufferObject,
            kind: MemCpyType = MemCpyType.HOST_TO_HOST) -> Status:
    _memcpy.copy_buffer(dst, src, kind)


@_status_call
def copy_memory_rect(params: Copy3D) -> Status:
    _memcpy.copy_rect_3d(params)


# ----------------------------------------------------------------------------
# Kernels
# ----------------------------------------------------------------------------

@_status_call
def execute_add(output: BufferObject, operand0: BufferObject, operand1: BufferObject,
                stream=None, block: bool = True) -> Status:
    _device.launch(kernels.add, output, operand0, operand1, block=block)


@_status_call
def execute_add_scalar(output: BufferObject, scalar, vector: BufferObject,
                       stream=None, block: bool = True) -> Status:
    _device.launch(kernels.add_scalar, output, scalar, vector, block=block)


@_status_call
def execute_mul(output: BufferObject, operand0: BufferObject, operand1: BufferObject,
                stream=None, block: bool = True) -> Status:
    _device.launch(kernels.mul, output, operand0, operand1, block=block)


@_status_call
def execute_mul_scalar(output: BufferObject, scalar, vector: BufferObject,
                       stream=None, block: bool = True) -> Status:
    _device.launch(kernels.mul_scalar, output, scalar, vector, block=block)


@_status_call
def execute_relu(output: BufferObject, pim_data: BufferObject,
                 stream=None, block: bool = True) -> Status:
    _device.launch(kernels.relu, output, pim_data, block=block)


@_status_call
def execute_gemv(output: BufferObject, vector: BufferObject, matrix: BufferObject,
                 stream=None, block: bool = True) -> Status:
    _device.launch(kernels.gemv, output, vector, matrix, block=block)


@_status_call
def execute_gemv_add(output: BufferObject, vector: BufferObject, matrix: BufferObject,
                     stream=None, block: bool = True) -> Status:
    """output = output + GEMV(vector, matrix)"""
    _device.launch(kernels.gemv_add, output, vector, matrix, _device.allocator, block=block)


@_status_call
def execute_gemv_add_bias(output: BufferObject, vector: BufferObject, matrix: BufferObject,
                          bias: BufferObject, relu: bool = False, stream=None,
                          block: bool = True, policy: Optional[str] = None) -> Status:
    """output = GEMV(vector, matrix) + bias, then ReLU when `relu` is set."""
    _device.launch(kernels.gemv_add_relu, output, vector, matrix, bias, relu,
                   policy or _config.fused_error_policy, block=block)


@_status_call
def execute_bn(output: BufferObject, pim_data: BufferObject, beta: BufferObject,
               gamma: BufferObject, mean: BufferObject, variance: BufferObject,
               epsilon: float, stream=None, block: bool = True) -> Status:
    _device.launch(kernels.batch_norm, output, pim_data, beta, gamma, mean, variance,
                   epsilon, block=block)


def execute_dummy() -> Status:
    return Status.SUCCESS


def synchronize(stream=None) -> Status:
    _device.sync()
    return Status.SUCCESS
