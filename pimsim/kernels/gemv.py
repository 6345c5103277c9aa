"""
Matrix-vector kernels for the PIM simulator.

Operand layouts, each given as (w, h, c, n):

    vector  (K, 1, C, N)
    matrix  (K, M, C, 1)   one weight matrix shared by the whole batch
    output  (M, 1, C, N)

The dot products accumulate in fp16. The accumulator starts at +0.0 and k
runs upwards; every product and every partial sum is rounded to fp16, as the
hardware does, so long reductions drift from a wide-accumulator result.
"""

import logging
from typing import Optional

import numpy as np

from pimsim.config import ACCUMULATE, FAIL_FAST, FUSED_ERROR_POLICIES
from pimsim.errors import OperationError
from pimsim.kernels.elementwise import add, check_operands, relu
from pimsim.layout import tensor_view
from pimsim.runtime.allocator import HostAllocator
from pimsim.runtime.buffer import BufferObject, scratch_buffer

logger = logging.getLogger(__name__)


def check_gemv_shapes(out: BufferObject, vector: BufferObject, matrix: BufferObject) -> None:
    for bo in (out, vector, matrix):
        check_operands(bo)

    vec, mat, res = vector.bshape, matrix.bshape, out.bshape
    if mat.n != 1:
        raise OperationError(f"GEMV matrix must have n == 1, got {mat.n}")
    if res.n != vec.n:
        raise OperationError(f"GEMV batch mismatch: output n={res.n}, vector n={vec.n}")
    if not (mat.c == vec.c == res.c):
        raise OperationError(f"GEMV channel mismatch: matrix c={mat.c}, vector c={vec.c}, output c={res.c}")
    if mat.w != vec.w:
        raise OperationError(f"GEMV inner dimension mismatch: matrix w={mat.w}, vector w={vec.w}")
    if res.w != mat.h:
        raise OperationError(f"GEMV output width {res.w} does not match matrix height {mat.h}")
    if vec.h != 1 or res.h != 1:
        # Just GEMV, not GEMM
        raise OperationError(f"GEMV needs vector and output height 1, got {vec.h} and {res.h}")


def gemv(out: BufferObject, vector: BufferObject, matrix: BufferObject) -> None:
    """
    Matrix-vector product.

    Computes: out[n, c, m] = sum_k matrix[c, m, k] * vector[n, c, k]
    """
    check_gemv_shapes(out, vector, matrix)

    vec = tensor_view(vector)[:, :, 0, :]     # (N, C, K)
    mat = tensor_view(matrix)[0]              # (C, M, K)
    n, c, k_len = vec.shape
    m = mat.shape[1]

    acc = np.zeros((n, c, m), dtype=np.float16)
    for k in range(k_len):
        acc += mat[None, :, :, k] * vec[:, :, k, None]

    tensor_view(out)[:, :, 0, :] = acc


def gemv_add(out: BufferObject, vector: BufferObject, matrix: BufferObject,
             allocator: HostAllocator) -> None:
    """
    Accumulating matrix-vector product.

    Computes: out = out + gemv(vector, matrix)

    The product goes to a scratch buffer shaped like `out`, which is released
    whether or not either stage succeeds.
    """
    with scratch_buffer(out, allocator) as partial:
        gemv(partial, vector, matrix)
        add(out, out, partial)


def gemv_add_relu(out: BufferObject, vector: BufferObject, matrix: BufferObject,
                  bias: BufferObject, apply_relu: bool = False,
                  policy: Optional[str] = None) -> None:
    """
    Fused matrix-vector product, bias and optional ReLU, all in place on `out`.

    Stages:
        1. out = gemv(vector, matrix)
        2. out = out + bias
        3. out = relu(out)          (only when apply_relu)

    Args:
        policy: FAIL_FAST stops at the first failing stage. ACCUMULATE runs
            every stage regardless and raises the first error afterwards.
            Either way `out` may be partially updated on failure.
    """
    policy = policy or FAIL_FAST
    if policy not in FUSED_ERROR_POLICIES:
        raise OperationError(f"Unknown fused error policy: {policy!r}")

    stages = [
        (gemv, (out, vector, matrix)),
        (add, (out, out, bias)),
    ]
    if apply_relu:
        stages.append((relu, (out, out)))

    first_error = None
    for stage, args in stages:
        try:
            stage(*args)
        except OperationError as exc:
            if policy == FAIL_FAST:
                raise
            logger.debug("fused gemv: stage %s failed, continuing: %s", stage.__name__, exc)
            if first_error is None:
                first_error = exc

    if policy == ACCUMULATE and first_error is not None:
        raise first_error
