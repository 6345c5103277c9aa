"""
Buffer objects: memory bound to a tensor shape and precision.

A buffer either owns its memory (allocated from a HostAllocator and released
by destroy/free) or borrows caller memory, which this layer never releases.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import numpy as np

from pimsim.errors import AllocationError
from pimsim.layout import as_bytes
from pimsim.runtime.allocator import HostAllocator
from pimsim.types import MemType, Precision, Shape, element_size

logger = logging.getLogger(__name__)


class Ownership(Enum):
    OWNED = "owned"
    BORROWED = "borrowed"


@dataclass(eq=False)
class BufferObject:
    """
    Attributes:
        mem_type: Nominal location of the memory (informational)
        bshape: Logical shape
        bshape_r: Allocated shape
        precision: Element precision
        data: Flat uint8 array, or None when no memory is attached
        ownership: Whether release goes back to `allocator`
    """
    mem_type: MemType
    bshape: Shape
    bshape_r: Shape
    precision: Precision
    data: Optional[np.ndarray] = None
    ownership: Ownership = Ownership.OWNED
    allocator: Optional[HostAllocator] = field(default=None, repr=False)
    destroyed: bool = field(default=False, repr=False)

    @property
    def size(self) -> int:
        """Byte size: element count times element size."""
        return self.bshape.numel * element_size(self.precision)


def make_shape(w, h, c, n) -> Shape:
    """Build a Shape from caller extents; malformed extents are an allocation failure."""
    try:
        return Shape(w=w, h=h, c=c, n=n)
    except ValueError as exc:
        raise AllocationError(str(exc)) from exc


def _require(bo: Optional[BufferObject]) -> BufferObject:
    if bo is None:
        raise AllocationError("buffer object is null")
    return bo


def _attach(bo: BufferObject, user_ptr, allocator: HostAllocator) -> None:
    if user_ptr is not None:
        try:
            memory = as_bytes(user_ptr)
        except ValueError as exc:
            raise AllocationError(f"Cannot borrow external memory: {exc}") from exc
        if not memory.flags.writeable:
            raise AllocationError("Cannot borrow read-only memory")
        if memory.size < bo.size:
            raise AllocationError(
                f"External memory holds {memory.size} bytes, buffer needs {bo.size}"
            )
        bo.data = memory[:bo.size]
        bo.ownership = Ownership.BORROWED
        return

    bo.data = allocator.alloc(bo.size)
    bo.ownership = Ownership.OWNED
    bo.allocator = allocator


def _release(bo: BufferObject) -> None:
    if bo.ownership is Ownership.OWNED and bo.data is not None:
        bo.allocator.free(bo.data)
    bo.data = None


def create_buffer(
    shape: Shape,
    precision: Precision,
    mem_type: MemType,
    allocator: HostAllocator,
    user_ptr=None,
    shape_r: Optional[Shape] = None,
) -> BufferObject:
    """
    Create a buffer object with memory attached.

    Args:
        shape: Logical shape
        precision: Element precision
        mem_type: Nominal memory location
        allocator: Source of owned memory
        user_ptr: External memory to borrow instead of allocating
        shape_r: Allocated shape (defaults to `shape`)

    Raises:
        AllocationError: the allocator refused, or `user_ptr` is too small
    """
    bo = BufferObject(
        mem_type=mem_type,
        bshape=shape,
        bshape_r=shape if shape_r is None else shape_r,
        precision=precision,
        allocator=allocator,
    )
    _attach(bo, user_ptr, allocator)
    logger.debug("created %s buffer %s (%d bytes, %s)",
                 mem_type.value, shape.nchw(), bo.size, bo.ownership.value)
    return bo


def destroy_buffer(bo: BufferObject) -> None:
    """Release owned memory and retire the buffer. Must not be called twice."""
    _require(bo)
    assert not bo.destroyed, "buffer object destroyed twice"
    _release(bo)
    bo.destroyed = True


def free_buffer_memory(bo: BufferObject) -> None:
    """Release owned memory but keep the buffer object usable."""
    if _require(bo).ownership is Ownership.BORROWED:
        return
    _release(bo)


def reallocate_buffer(bo: BufferObject, allocator: Optional[HostAllocator] = None) -> None:
    """
    Replace the buffer's memory with a fresh owned allocation.

    Borrowed memory is dropped, not released. If the allocation is refused
    the buffer is left without memory and AllocationError propagates.
    """
    _release(_require(bo))
    _attach(bo, None, allocator or bo.allocator)


@contextmanager
def scratch_buffer(like: BufferObject, allocator: HostAllocator):
    """Temporary owned buffer with `like`'s shapes, released on every exit path."""
    bo = create_buffer(like.bshape, like.precision, like.mem_type, allocator,
                       shape_r=like.bshape_r)
    try:
        yield bo
    finally:
        destroy_buffer(bo)


__all__ = [
    'Ownership',
    'make_shape',
    'BufferObject',
    'create_buffer',
    'destroy_buffer',
    'free_buffer_memory',
    'reallocate_buffer',
    'scratch_buffer',
]
