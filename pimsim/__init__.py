# pimsim
# Host-side emulation of a Processing-in-Memory runtime: buffer objects,
# memory copies and the fp16 kernel library.

import logging

from pimsim.types import (
    Status, RuntimeType, Precision, MemType, MemCpyType, MemFlag, OpType, Shape, element_size,
)
from pimsim.errors import PimError, AllocationError, CopyError, OperationError
from pimsim.runtime.buffer import BufferObject, Ownership
from pimsim.runtime.descriptor import Descriptor
from pimsim.runtime.memcpy import Copy3D

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    'Status', 'RuntimeType', 'Precision', 'MemType', 'MemCpyType', 'MemFlag', 'OpType',
    'Shape', 'element_size',
    'PimError', 'AllocationError', 'CopyError', 'OperationError',
    'BufferObject', 'Ownership', 'Descriptor', 'Copy3D',
]
