"""
Software Simulator HAL - host-memory implementation of the PIM runtime.

Buffers live in host memory and kernels run on the CPU with numpy. The
simulator is synchronous: a non-blocking launch still completes before
launch() returns, and sync() has nothing to wait for.
"""

import logging
from typing import Optional

from pimsim.runtime.allocator import HostAllocator
from pimsim.runtime.device import DeviceCapabilities, Execution, PimDevice

logger = logging.getLogger(__name__)


class CompletedExecution(Execution):
    """Execution handle for synchronous (already-complete) operations."""

    def __init__(self, name: str, requested_block: bool):
        self.name = name
        self.requested_block = requested_block

    @property
    def done(self) -> bool:
        return True

    def __repr__(self) -> str:
        return f"CompletedExecution({self.name!r}, requested_block={self.requested_block})"


class SimulatorDevice(PimDevice):
    """
    Software simulation backend.

    Executes kernels on the CPU, providing the golden reference for
    hardware backends.
    """

    CAPABILITIES = DeviceCapabilities(asynchronous=False)

    def __init__(self, allocator: Optional[HostAllocator] = None, device_id: int = 0):
        self._allocator = allocator or HostAllocator()
        self.device_id = device_id

    @property
    def capabilities(self) -> DeviceCapabilities:
        return self.CAPABILITIES

    @property
    def allocator(self) -> HostAllocator:
        return self._allocator

    def launch(self, fn, *args, block: bool = True, **kwargs) -> Execution:
        name = getattr(fn, "__name__", repr(fn))
        if not block:
            logger.debug("%s: non-blocking launch runs synchronously on the simulator", name)
        fn(*args, **kwargs)
        return CompletedExecution(name, block)

    def sync(self, execution: Optional[Execution] = None) -> None:
        # Simulator is synchronous - nothing to wait for
        pass
