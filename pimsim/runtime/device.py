"""
PIM Device - Abstract backend interface (HAL boundary).

Every backend declares its capabilities, provides an allocator for buffer
memory, and runs kernels through launch()/sync().
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Optional

from pimsim.runtime.allocator import HostAllocator


@dataclass(frozen=True)
class DeviceCapabilities:
    """
    Attributes:
        asynchronous: launch(block=False) may return before the kernel has
            finished. When False, every launch completes before returning.
    """
    asynchronous: bool = False


class Execution(ABC):
    """Handle to a launched kernel."""

    @property
    @abstractmethod
    def done(self) -> bool:
        """True once the kernel has finished."""
        pass


class PimDevice(ABC):
    """
    Abstract PIM device interface.

    All backends must implement this interface.
    """

    @property
    @abstractmethod
    def capabilities(self) -> DeviceCapabilities:
        pass

    @property
    @abstractmethod
    def allocator(self) -> HostAllocator:
        """Allocator backing buffer objects created for this device."""
        pass

    @abstractmethod
    def launch(self, fn: Callable[..., Any], *args, block: bool = True, **kwargs) -> Execution:
        """Run kernel `fn` on the device."""
        pass

    @abstractmethod
    def sync(self, execution: Optional[Execution] = None) -> None:
        """Wait for `execution` (or every outstanding launch) to complete."""
        pass


__all__ = ['DeviceCapabilities', 'Execution', 'PimDevice']
