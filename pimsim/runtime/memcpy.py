"""
Memory copy engine.

Three forms: a flat byte copy between raw memory, a whole-buffer copy between
two buffer objects of equal size, and a rectangular 3D copy that moves a
(width_in_bytes x height x depth) cuboid between independently strided
source and destination regions.

The MemCpyType passed to the copies is accepted for parity with hardware
backends. The host simulator keeps every buffer in host memory, so it neither
validates the direction against the buffers' locations nor dispatches on it.
"""

from __future__ import annotations

import logging
import numbers
from dataclasses import dataclass
from typing import Optional

import numpy as np

from pimsim.errors import CopyError
from pimsim.layout import as_bytes, plane_rows, row_pitch
from pimsim.runtime.buffer import BufferObject
from pimsim.types import MemCpyType, MemType

logger = logging.getLogger(__name__)


def _bytes_of(ptr) -> np.ndarray:
    try:
        return as_bytes(ptr)
    except ValueError as exc:
        raise CopyError(str(exc)) from exc


def _is_count(value) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(value, bool) and value >= 0


def copy_flat(dst, src, nbytes: int, kind: MemCpyType = MemCpyType.HOST_TO_HOST) -> None:
    """Copy `nbytes` bytes from the start of `src` to the start of `dst`."""
    if dst is None or src is None or not nbytes:
        raise CopyError("copy_flat needs two non-null pointers and a non-zero size")
    if not _is_count(nbytes):
        raise CopyError(f"copy size must be a positive byte count, got {nbytes!r}")

    dst_bytes = _bytes_of(dst)
    src_bytes = _bytes_of(src)
    if not dst_bytes.flags.writeable:
        raise CopyError("copy destination is read-only")
    if dst_bytes.size < nbytes or src_bytes.size < nbytes:
        raise CopyError(
            f"copy of {nbytes} bytes exceeds memory (src={src_bytes.size}, dst={dst_bytes.size})"
        )

    dst_bytes[:nbytes] = src_bytes[:nbytes]
    logger.debug("%s copy of %d bytes", kind, nbytes)


def copy_buffer(dst: BufferObject, src: BufferObject,
                kind: MemCpyType = MemCpyType.HOST_TO_HOST) -> None:
    """Copy all of `src` into `dst`. Both need memory and equal byte sizes."""
    if dst is None or src is None:
        raise CopyError("buffer copy needs two buffer objects")
    if dst.data is None or src.data is None or not src.size or src.size != dst.size:
        raise CopyError(
            f"buffer copy needs allocated buffers of equal size (src={src.size}, dst={dst.size})"
        )

    dst.data[:dst.size] = src.data[:src.size]
    logger.debug("%s buffer copy of %d bytes", kind, src.size)


@dataclass
class Copy3D:
    """
    Rectangular copy request.

    Each side is given either as a buffer object (`*_bo`, pitch and plane
    rows taken from its shape) or as raw memory with an explicit row pitch in
    bytes and plane height in rows. When `*_bo` is set, `*_ptr`, `*_pitch`
    and `*_height` are ignored.
    """
    width_in_bytes: int = 0
    height: int = 0
    depth: int = 0

    src_x_in_bytes: int = 0
    src_y: int = 0
    src_z: int = 0
    src_mem_type: MemType = MemType.HOST
    src_ptr: Optional[object] = None
    src_pitch: int = 0
    src_height: int = 0
    src_bo: Optional[BufferObject] = None

    dst_x_in_bytes: int = 0
    dst_y: int = 0
    dst_z: int = 0
    dst_mem_type: MemType = MemType.HOST
    dst_ptr: Optional[object] = None
    dst_pitch: int = 0
    dst_height: int = 0
    dst_bo: Optional[BufferObject] = None


@dataclass
class _Side:
    memory: np.ndarray
    pitch: int
    rows: int
    base: int


def _resolve(name: str, ptr, pitch: int, height: int, bo: Optional[BufferObject],
             x: int, y: int, z: int) -> _Side:
    if ptr is None and bo is None:
        raise CopyError(f"rectangular copy needs a {name} pointer or buffer")

    if bo is not None:
        memory = bo.data
        pitch = row_pitch(bo.bshape, bo.precision)
        height = plane_rows(bo.bshape)
    else:
        memory = _bytes_of(ptr)
        if not (_is_count(pitch) and _is_count(height)):
            raise CopyError(f"{name} pitch and height must be non-negative integers")

    if memory is None or not pitch or not height:
        raise CopyError(f"{name} memory, pitch and height must be non-null and non-zero")

    base = (z * height + y) * pitch + x
    return _Side(memory=memory, pitch=pitch, rows=height, base=base)


def _row_offsets(side: _Side, height: int, depth: int) -> np.ndarray:
    planes = np.arange(depth, dtype=np.int64)[:, None]
    rows = np.arange(height, dtype=np.int64)[None, :]
    return (side.base + (planes * side.rows + rows) * side.pitch).reshape(-1)


def copy_rect_3d(params: Copy3D) -> None:
    """
    Move the cuboid described by `params`.

    Row (plane d, row r) of the region starts at
    `base + (d * plane_rows + r) * pitch` on each side, where
    `base = (z * plane_rows + y) * pitch + x_in_bytes`.

    Raises:
        CopyError: a side is missing or malformed, an extent or offset is
            negative, or the region reaches outside either side's memory.
            Nothing is copied in that case.
    """
    if params is None:
        raise CopyError("rectangular copy needs parameters")
    geometry = {
        "width_in_bytes": params.width_in_bytes, "height": params.height, "depth": params.depth,
        "src_x_in_bytes": params.src_x_in_bytes, "src_y": params.src_y, "src_z": params.src_z,
        "dst_x_in_bytes": params.dst_x_in_bytes, "dst_y": params.dst_y, "dst_z": params.dst_z,
    }
    for field_name, value in geometry.items():
        if not _is_count(value):
            raise CopyError(f"rectangular copy {field_name} must be a non-negative integer, "
                            f"got {value!r}")

    src = _resolve("source", params.src_ptr, params.src_pitch, params.src_height,
                   params.src_bo, params.src_x_in_bytes, params.src_y, params.src_z)
    dst = _resolve("destination", params.dst_ptr, params.dst_pitch, params.dst_height,
                   params.dst_bo, params.dst_x_in_bytes, params.dst_y, params.dst_z)

    width, height, depth = params.width_in_bytes, params.height, params.depth
    if not (width and height and depth):
        return
    if not dst.memory.flags.writeable:
        raise CopyError("destination memory is read-only")

    src_rows = _row_offsets(src, height, depth)
    dst_rows = _row_offsets(dst, height, depth)
    for side, rows, name in ((src, src_rows, "source"), (dst, dst_rows, "destination")):
        start, end = int(rows.min()), int(rows.max()) + width
        if start < 0 or end > side.memory.size:
            raise CopyError(
                f"rectangular copy spans bytes [{start}, {end}) of {name} memory "
                f"holding {side.memory.size}"
            )

    columns = np.arange(width, dtype=np.int64)[None, :]
    dst.memory[dst_rows[:, None] + columns] = src.memory[src_rows[:, None] + columns]
    logger.debug("rect copy %dB x %d x %d (%s -> %s)", width, height, depth,
                 params.src_mem_type, params.dst_mem_type)


__all__ = ['copy_flat', 'copy_buffer', 'Copy3D', 'copy_rect_3d']
