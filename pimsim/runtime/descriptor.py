"""
Descriptors: shape templates for the operands of one operation.

A descriptor records the logical and allocated shapes once so that every
operand buffer of an operation is derived consistently. Hardware backends pad
the allocated shape per operand role; on the host simulator every role maps
to the descriptor's shapes unchanged.
"""

from dataclasses import dataclass

from pimsim.runtime.allocator import HostAllocator
from pimsim.errors import AllocationError
from pimsim.runtime.buffer import BufferObject, create_buffer, make_shape
from pimsim.types import MemFlag, MemType, OpType, Precision, Shape


@dataclass(frozen=True)
class Descriptor:
    bshape: Shape
    bshape_r: Shape
    precision: Precision
    op_type: OpType = OpType.DUMMY

    def shapes_for(self, mem_flag: MemFlag):
        """(logical, allocated) shapes for an operand playing `mem_flag`."""
        return self.bshape, self.bshape_r


def create_descriptor(n: int, c: int, h: int, w: int, precision: Precision,
                      op_type: OpType = OpType.DUMMY) -> Descriptor:
    shape = make_shape(w, h, c, n)
    return Descriptor(bshape=shape, bshape_r=shape, precision=precision, op_type=op_type)


def create_buffer_from_descriptor(
    desc: Descriptor,
    mem_type: MemType,
    allocator: HostAllocator,
    mem_flag: MemFlag = MemFlag.ELT_OP,
    user_ptr=None,
) -> BufferObject:
    if desc is None:
        raise AllocationError("descriptor is null")
    shape, shape_r = desc.shapes_for(mem_flag)
    return create_buffer(shape, desc.precision, mem_type, allocator,
                         user_ptr=user_ptr, shape_r=shape_r)


__all__ = ['Descriptor', 'create_descriptor', 'create_buffer_from_descriptor']
