import numpy as np
import pytest

from pimsim.errors import OperationError
from pimsim.kernels import batch_norm
from pimsim.layout import flat_view, tensor_view


def _params(make_bo, channels, beta, gamma, mean, variance):
    return [make_bo(1, 1, channels, 1, values=np.broadcast_to(v, channels))
            for v in (beta, gamma, mean, variance)]


class TestBatchNorm:
    def test_identity_parameters(self, make_bo):
        eps = 1e-5
        rng = np.random.default_rng(0)
        values = rng.uniform(-8.0, 8.0, (2, 3, 4, 5)).astype(np.float16)
        x = make_bo(5, 4, 3, 2, values=values)
        out = make_bo(5, 4, 3, 2)
        batch_norm(out, x, *_params(make_bo, 3, 0.0, 1.0, 0.0, 1.0 - eps), eps)
        np.testing.assert_allclose(tensor_view(out).astype(np.float32),
                                   values.astype(np.float32), rtol=1e-3)

    def test_per_channel_parameters(self, make_bo):
        x = make_bo(2, 1, 2, 1, values=[[3.0, 5.0], [1.0, -1.0]])
        out = make_bo(2, 1, 2, 1)
        beta = make_bo(1, 1, 2, 1, values=[1.0, 0.0])
        gamma = make_bo(1, 1, 2, 1, values=[2.0, 3.0])
        mean = make_bo(1, 1, 2, 1, values=[1.0, 0.0])
        variance = make_bo(1, 1, 2, 1, values=[4.0, 1.0])
        batch_norm(out, x, beta, gamma, mean, variance, 0.0)
        # c0: 2 * (x - 1) / 2 + 1 ; c1: 3 * x / 1
        np.testing.assert_array_equal(flat_view(out), [3.0, 5.0, 3.0, -3.0])

    def test_matches_stepwise_half_arithmetic(self, make_bo):
        rng = np.random.default_rng(1)
        values = rng.uniform(-2.0, 2.0, (1, 2, 3, 3)).astype(np.float16)
        beta, gamma, mean = (rng.uniform(-1, 1, 2).astype(np.float16) for _ in range(3))
        variance = rng.uniform(0.5, 2.0, 2).astype(np.float16)
        eps = 0.001

        x, out = make_bo(3, 3, 2, 1, values=values), make_bo(3, 3, 2, 1)
        params = [make_bo(1, 1, 2, 1, values=p) for p in (beta, gamma, mean, variance)]
        batch_norm(out, x, *params, eps)

        expected = np.empty_like(values)
        for c in range(2):
            divisor = np.sqrt(np.float16(variance[c] + np.float16(eps)))
            for i, v in np.ndenumerate(values[0, c]):
                normed = np.float16(np.float16(v - mean[c]) / divisor)
                expected[(0, c) + i] = np.float16(np.float16(gamma[c] * normed) + beta[c])
        np.testing.assert_array_equal(tensor_view(out), expected)

    def test_in_place(self, make_bo):
        x = make_bo(2, 1, 1, 1, values=[2.0, 4.0])
        batch_norm(x, x, *_params(make_bo, 1, 1.0, 1.0, 2.0, 1.0), 0.0)
        np.testing.assert_array_equal(flat_view(x), [1.0, 3.0])

    def test_channel_mismatch_leaves_output(self, make_bo):
        x = make_bo(4, 1, 3, 1, values=np.ones(12))
        out = make_bo(4, 1, 3, 1, values=np.full(12, 7.0))
        beta = make_bo(1, 1, 2, 1)
        _, gamma, mean, variance = _params(make_bo, 3, 0.0, 1.0, 0.0, 1.0)
        with pytest.raises(OperationError):
            batch_norm(out, x, beta, gamma, mean, variance, 1e-5)
        np.testing.assert_array_equal(flat_view(out), np.full(12, 7.0))

    @pytest.mark.parametrize("bad", [1, 2, 3])
    def test_any_parameter_mismatch(self, make_bo, bad):
        x, out = make_bo(4, 1, 3, 1), make_bo(4, 1, 3, 1)
        params = _params(make_bo, 3, 0.0, 1.0, 0.0, 1.0)
        params[bad] = make_bo(1, 1, 4, 1)
        with pytest.raises(OperationError):
            batch_norm(out, x, *params, 1e-5)

    def test_size_mismatch(self, make_bo):
        x, out = make_bo(4, 1, 3, 1), make_bo(4, 1, 3, 2)
        with pytest.raises(OperationError):
            batch_norm(out, x, *_params(make_bo, 3, 0.0, 1.0, 0.0, 1.0), 1e-5)

    def test_parameter_extra_dims_unchecked(self, make_bo):
        x, out = make_bo(2, 1, 2, 1, values=[1.0, 2.0, 3.0, 4.0]), make_bo(2, 1, 2, 1)
        # Parameters shaped (2, 1, 2, 1): only the first two values are read
        beta = make_bo(2, 1, 2, 1, values=[0.0, 0.0, 9.0, 9.0])
        gamma = make_bo(2, 1, 2, 1, values=[1.0, 1.0, 9.0, 9.0])
        mean = make_bo(2, 1, 2, 1, values=[0.0, 0.0, 9.0, 9.0])
        variance = make_bo(2, 1, 2, 1, values=[1.0, 1.0, 9.0, 9.0])
        batch_norm(out, x, beta, gamma, mean, variance, 0.0)
        np.testing.assert_array_equal(flat_view(out), [1.0, 2.0, 3.0, 4.0])
