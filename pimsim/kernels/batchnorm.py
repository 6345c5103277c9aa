"""
Batch normalization kernel.

Operand layouts, each given as (w, h, c, n):

    input / output             (W, H, C, N)
    beta, gamma, mean, variance  (1, 1, C, 1)

Only the channel count of the parameter buffers is checked; their first C
elements are used.
"""

import numpy as np

from pimsim.errors import OperationError
from pimsim.kernels.elementwise import check_operands
from pimsim.layout import flat_view, tensor_view
from pimsim.runtime.buffer import BufferObject


def _channel_values(bo: BufferObject, channels: int, name: str) -> np.ndarray:
    check_operands(bo)
    if bo.bshape.c != channels:
        raise OperationError(f"batch norm {name} has {bo.bshape.c} channels, input has {channels}")
    return flat_view(bo)[:channels].reshape(channels, 1, 1)


def batch_norm(out: BufferObject, x: BufferObject, beta: BufferObject, gamma: BufferObject,
               mean: BufferObject, variance: BufferObject, epsilon: float) -> None:
    """
    Per-channel affine normalization, computed in fp16.

    Computes, for each (n, c) and spatial position:
        divisor = sqrt(variance[c] + epsilon)
        out = gamma[c] * ((x - mean[c]) / divisor) + beta[c]
    """
    check_operands(out, x)
    channels = x.bshape.c
    b = _channel_values(beta, channels, "beta")
    g = _channel_values(gamma, channels, "gamma")
    mu = _channel_values(mean, channels, "mean")
    var = _channel_values(variance, channels, "variance")

    try:
        eps = np.float16(epsilon)
    except (TypeError, ValueError) as exc:
        raise OperationError(f"batch norm epsilon is not a number: {epsilon!r}") from exc

    divisor = np.sqrt(var + eps)
    values = tensor_view(x)
    result = g * ((values - mu) / divisor) + b
    flat_view(out)[:] = result.reshape(-1)
