# allocator.py
# ---------------------------------------------
# Host memory allocator backing every buffer object.
# Blocks are flat uint8 numpy arrays; sizes are in bytes.
# ---------------------------------------------

import logging
import numbers
from typing import Optional

import numpy as np

from pimsim.errors import AllocationError

logger = logging.getLogger(__name__)


class HostAllocator:
    def __init__(self, capacity: Optional[int] = None):
        """
        Args:
            capacity: Maximum number of live bytes, or None for no limit
                beyond what the host itself can provide.
        """
        self.capacity = capacity
        self.memory_map = {}    # id(block) -> (block, nbytes)
        self.high_water = 0
        self.alloc_count = 0
        self.free_count = 0

    def alloc(self, nbytes: int) -> np.ndarray:
        """
        Allocate 'nbytes' zero-initialised bytes.

        Raises AllocationError if the request would exceed the capacity or
        the host refuses it. Nothing is recorded on failure.
        """
        if isinstance(nbytes, bool) or not isinstance(nbytes, numbers.Integral) or nbytes < 0:
            raise AllocationError(f"Cannot allocate {nbytes!r} bytes")

        if self.capacity is not None and self.used() + nbytes > self.capacity:
            raise AllocationError(
                f"Out of host memory: cannot allocate {nbytes} bytes. "
                f"Used: {self.used()}, Capacity: {self.capacity}"
            )

        try:
            block = np.zeros(nbytes, dtype=np.uint8)
        except MemoryError as exc:
            raise AllocationError(f"Host refused allocation of {nbytes} bytes") from exc

        self.memory_map[id(block)] = (block, nbytes)
        self.alloc_count += 1
        self.high_water = max(self.high_water, self.used())
        logger.debug("alloc %d bytes (live=%d)", nbytes, len(self.memory_map))
        return block

    def free(self, block: np.ndarray) -> Optional[int]:
        """
        Release a block returned by alloc().

        Returns:
            Number of bytes released, or None if the block is not owned by
            this allocator.
        """
        entry = self.memory_map.get(id(block))
        if entry is None or entry[0] is not block:
            return None

        del self.memory_map[id(block)]
        self.free_count += 1
        logger.debug("free %d bytes (live=%d)", entry[1], len(self.memory_map))
        return entry[1]

    def owns(self, block) -> bool:
        entry = self.memory_map.get(id(block))
        return entry is not None and entry[0] is block

    def live_blocks(self) -> int:
        return len(self.memory_map)

    def used(self) -> int:
        """Total bytes currently allocated."""
        return sum(nbytes for _, nbytes in self.memory_map.values())

    def reset(self):
        """Forget every block and reset the counters."""
        self.memory_map.clear()
        self.high_water = 0
        self.alloc_count = 0
        self.free_count = 0

    def dump(self):
        """Log the memory map."""
        logger.info("==== HOST MEMORY MAP ====")
        for index, (_, nbytes) in enumerate(self.memory_map.values()):
            logger.info("block %-4d : size=%d bytes", index, nbytes)
        logger.info("Allocated: %d bytes in %d blocks", self.used(), len(self.memory_map))
        logger.info("High water mark: %d bytes", self.high_water)
        logger.info("Capacity: %s", "unlimited" if self.capacity is None else f"{self.capacity} bytes")
