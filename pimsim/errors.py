"""Exceptions raised inside the runtime. pimsim.api turns them into Status codes."""

from pimsim.types import Status


class PimError(Exception):
    status = Status.OPERATION_ERROR


class AllocationError(PimError, MemoryError):
    """The allocator could not (or would not) satisfy a request."""
    status = Status.ALLOC_ERROR


class CopyError(PimError, ValueError):
    """Null pointer, zero length, size mismatch or malformed copy geometry."""
    status = Status.COPY_ERROR


class OperationError(PimError, ValueError):
    """A kernel's shape, size or precision precondition does not hold."""
    status = Status.OPERATION_ERROR


__all__ = ['PimError', 'AllocationError', 'CopyError', 'OperationError']
