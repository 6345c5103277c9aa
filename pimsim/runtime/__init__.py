# Buffer model, descriptors, copy engine and the device interface.

from pimsim.runtime.allocator import HostAllocator
from pimsim.runtime.buffer import (
    BufferObject, Ownership, create_buffer, destroy_buffer,
    free_buffer_memory, reallocate_buffer, scratch_buffer,
)
from pimsim.runtime.descriptor import Descriptor, create_descriptor, create_buffer_from_descriptor
from pimsim.runtime.device import DeviceCapabilities, Execution, PimDevice
from pimsim.runtime.memcpy import Copy3D, copy_buffer, copy_flat, copy_rect_3d

__all__ = [
    'HostAllocator',
    'BufferObject', 'Ownership', 'create_buffer', 'destroy_buffer',
    'free_buffer_memory', 'reallocate_buffer', 'scratch_buffer',
    'Descriptor', 'create_descriptor', 'create_buffer_from_descriptor',
    'DeviceCapabilities', 'Execution', 'PimDevice',
    'Copy3D', 'copy_buffer', 'copy_flat', 'copy_rect_3d',
]
