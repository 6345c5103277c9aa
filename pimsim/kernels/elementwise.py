"""
Elementwise kernels for the PIM simulator.

All kernels work on FP16 buffer objects and compute in half precision: each
result is the exact result rounded once to the nearest fp16 value.
"""

import numpy as np

from pimsim.errors import OperationError
from pimsim.layout import flat_view
from pimsim.runtime.buffer import BufferObject
from pimsim.types import Precision


def check_operands(*buffers: BufferObject) -> None:
    """Every operand must be FP16, have memory attached, and match in size."""
    for bo in buffers:
        if bo is None or bo.data is None:
            raise OperationError("kernel operand has no memory attached")
        if bo.precision is not Precision.FP16:
            raise OperationError(f"kernels support FP16 only, got {bo.precision.value}")
    sizes = {bo.size for bo in buffers}
    if len(sizes) != 1:
        raise OperationError(f"kernel operand sizes differ: {sorted(sizes)}")


def read_scalar(scalar) -> np.float16:
    """Read one fp16 value from a number, numpy scalar or 2-byte buffer."""
    if scalar is None:
        raise OperationError("scalar operand is null")
    if isinstance(scalar, np.ndarray):
        raw = np.ascontiguousarray(scalar).reshape(-1).view(np.uint8)
    elif isinstance(scalar, (bytes, bytearray, memoryview)):
        raw = np.frombuffer(scalar, dtype=np.uint8)
    else:
        try:
            return np.float16(scalar)
        except (TypeError, ValueError) as exc:
            raise OperationError(f"scalar operand is not a number: {scalar!r}") from exc

    if raw.size < 2:
        raise OperationError("scalar operand holds fewer than 2 bytes")
    return raw[:2].view(np.float16)[0]


def add(out: BufferObject, a: BufferObject, b: BufferObject) -> None:
    """
    Element-wise addition.

    Computes: out[i] = a[i] + b[i] for every element
    """
    check_operands(out, a, b)
    np.add(flat_view(a), flat_view(b), out=flat_view(out))


def add_scalar(out: BufferObject, scalar, vec: BufferObject) -> None:
    """
    Adds one scalar to every element.

    Computes: out[i] = vec[i] + scalar
    """
    check_operands(out, vec)
    value = read_scalar(scalar)
    np.add(flat_view(vec), value, out=flat_view(out))


def mul(out: BufferObject, a: BufferObject, b: BufferObject) -> None:
    """
    Element-wise multiplication.

    Computes: out[i] = a[i] * b[i] for every element
    """
    check_operands(out, a, b)
    np.multiply(flat_view(a), flat_view(b), out=flat_view(out))


def mul_scalar(out: BufferObject, scalar, vec: BufferObject) -> None:
    """Computes: out[i] = vec[i] * scalar"""
    check_operands(out, vec)
    value = read_scalar(scalar)
    np.multiply(flat_view(vec), value, out=flat_view(out))


def relu(out: BufferObject, x: BufferObject) -> None:
    """
    Element-wise ReLU activation.

    Computes: out[i] = x[i] if the sign bit of x[i] is clear, else +0.0.
    The sign-bit test maps -0.0 to +0.0 and every negative NaN to +0.0.
    """
    check_operands(out, x)
    values = flat_view(x)
    result = np.where(np.signbit(values), np.float16(0.0), values)
    flat_view(out)[:] = result
