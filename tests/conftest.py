"""
Pytest configuration and fixtures for pimsim tests
"""

import sys
from pathlib import Path
# Ensure project root is in path
sys.path.insert(0, str(Path(__file__).parent.parent))

import numpy as np
import pytest

from pimsim import api
from pimsim.hal.simulator import SimulatorDevice
from pimsim.layout import flat_view
from pimsim.runtime.allocator import HostAllocator
from pimsim.runtime.buffer import create_buffer
from pimsim.types import MemType, Precision, Shape


@pytest.fixture
def allocator():
    return HostAllocator()


@pytest.fixture
def make_bo(allocator):
    """Factory for buffers on the test allocator, optionally filled with values."""
    def _make(w, h=1, c=1, n=1, values=None, precision=Precision.FP16,
              mem_type=MemType.DEVICE):
        bo = create_buffer(Shape(w=w, h=h, c=c, n=n), precision, mem_type, allocator)
        if values is not None:
            view = flat_view(bo)
            view[:] = np.asarray(values, dtype=view.dtype).reshape(-1)
        return bo
    return _make


@pytest.fixture
def device():
    """Fresh simulator routed through pimsim.api for the duration of a test."""
    dev = SimulatorDevice(HostAllocator())
    previous = api.use_device(dev)
    yield dev
    api.use_device(previous)
