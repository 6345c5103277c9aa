"""
Core PIM runtime types.

Enumerations for the runtime's status codes, precisions, memory locations and
copy directions, plus the Shape record shared by buffers and descriptors.
"""

import numbers
from dataclasses import dataclass
from enum import Enum, IntEnum


class Status(IntEnum):
    """Return codes of the function surface in pimsim.api."""
    SUCCESS = 0
    ALLOC_ERROR = -1
    COPY_ERROR = -2
    OPERATION_ERROR = -3


class RuntimeType(Enum):
    HIP = "hip"
    OPENCL = "opencl"


class Precision(Enum):
    FP16 = "fp16"
    INT8 = "int8"


class MemType(Enum):
    """Where a buffer nominally lives. Informational on the host simulator."""
    HOST = "host"
    DEVICE = "device"
    PIM = "pim"


class MemCpyType(Enum):
    HOST_TO_HOST = "h2h"
    HOST_TO_DEVICE = "h2d"
    HOST_TO_PIM = "h2p"
    DEVICE_TO_HOST = "d2h"
    DEVICE_TO_DEVICE = "d2d"
    DEVICE_TO_PIM = "d2p"
    PIM_TO_HOST = "p2h"
    PIM_TO_DEVICE = "p2d"
    PIM_TO_PIM = "p2p"


class MemFlag(Enum):
    """Operand role used when deriving a buffer from a descriptor."""
    ELT_OP = "elt_op"
    GEMV_INPUT = "gemv_input"
    GEMV_WEIGHT = "gemv_weight"
    GEMV_OUTPUT = "gemv_output"


class OpType(Enum):
    ELT_ADD = "elt_add"
    ELT_MUL = "elt_mul"
    RELU = "relu"
    GEMV = "gemv"
    BN = "bn"
    COPY = "copy"
    DUMMY = "dummy"


ELEMENT_SIZES = {
    Precision.FP16: 2,
    Precision.INT8: 1,
}


def element_size(precision: Precision) -> int:
    """Bytes per element. Unknown precisions count as one byte."""
    return ELEMENT_SIZES.get(precision, 1)


@dataclass(frozen=True)
class Shape:
    """
    Four tensor extents in (w, h, c, n) order, width fastest-varying.

    `padded` marks the allocated ("real") variant of a shape as opposed to
    the logical one.
    """
    w: int
    h: int
    c: int
    n: int
    padded: bool = False

    def __post_init__(self):
        for name in ("w", "h", "c", "n"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, numbers.Integral) or value < 0:
                raise ValueError(f"Shape extent {name} must be a non-negative int, got {value!r}")
            object.__setattr__(self, name, int(value))

    @property
    def numel(self) -> int:
        return self.w * self.h * self.c * self.n

    def nchw(self) -> tuple:
        return (self.n, self.c, self.h, self.w)


__all__ = [
    'Status',
    'RuntimeType',
    'Precision',
    'MemType',
    'MemCpyType',
    'MemFlag',
    'OpType',
    'ELEMENT_SIZES',
    'element_size',
    'Shape',
]
