"""
Shape and stride arithmetic for the (n, c, h, w) tensor convention.

Every tensor is stored densely with w fastest-varying, then h, c and n.
The copy engine and all kernels address memory through these helpers.
"""

from typing import Tuple

import numpy as np

from pimsim.types import Precision, Shape, element_size


DTYPES = {
    Precision.FP16: np.float16,
    Precision.INT8: np.int8,
}


def as_bytes(ptr) -> np.ndarray:
    """
    View any C-contiguous array or buffer-protocol object as flat uint8.

    The returned array shares memory with `ptr`; None stays None.
    """
    if ptr is None:
        return None
    if isinstance(ptr, np.ndarray):
        if not ptr.flags['C_CONTIGUOUS']:
            raise ValueError("memory must be C-contiguous")
        return ptr.reshape(-1).view(np.uint8)
    try:
        return np.frombuffer(ptr, dtype=np.uint8)
    except TypeError as exc:
        raise ValueError(f"not a memory buffer: {type(ptr).__name__}") from exc


def strides(shape: Shape) -> Tuple[int, int, int, int]:
    """Element strides for (n, c, h, w)."""
    sw = 1
    sh = shape.w
    sc = shape.h * sh
    sn = shape.c * sc
    return (sn, sc, sh, sw)


def flat_index(shape: Shape, n: int, c: int, h: int, w: int) -> int:
    sn, sc, sh, sw = strides(shape)
    return n * sn + c * sc + h * sh + w * sw


def row_pitch(shape: Shape, precision: Precision) -> int:
    """Bytes in one row (the w extent)."""
    return shape.w * element_size(precision)


def plane_rows(shape: Shape) -> int:
    """Rows in one plane (the h extent)."""
    return shape.h


def flat_view(bo) -> np.ndarray:
    """Typed 1-D view over exactly `bo.size` bytes of a buffer object's memory."""
    dtype = DTYPES.get(bo.precision, np.uint8)
    return bo.data[:bo.size].view(dtype)


def tensor_view(bo) -> np.ndarray:
    """Typed (n, c, h, w) view of a buffer object's logical shape."""
    return flat_view(bo).reshape(bo.bshape.nchw())


__all__ = [
    'DTYPES',
    'as_bytes',
    'strides',
    'flat_index',
    'row_pitch',
    'plane_rows',
    'flat_view',
    'tensor_view',
]
