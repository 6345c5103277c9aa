"""
Pre-built kernels for the PIM simulator.

Usage:
    from pimsim.kernels import gemv
    gemv(out, vector, matrix)
"""

from pimsim.kernels.elementwise import add, add_scalar, mul, mul_scalar, relu
from pimsim.kernels.gemv import gemv, gemv_add, gemv_add_relu
from pimsim.kernels.batchnorm import batch_norm

__all__ = [
    'add',
    'add_scalar',
    'mul',
    'mul_scalar',
    'relu',
    'gemv',
    'gemv_add',
    'gemv_add_relu',
    'batch_norm',
]
