"""
Tests for the gated 2x2 solve.

Checks:
1. Closed-form solution of the normal equations
2. Singular tensors give zero flow without warnings
3. Confidence gate boundary
"""

import warnings

import numpy as np
import pytest

from invariant_lk.accumulator import StructureTensor
from invariant_lk.solver import confidence_mask, determinant, solve_flow


def _tensor(ixix, iyiy, ixiy, ixit, iyit, ssd):
    return StructureTensor(*(np.asarray(v, dtype=np.float64) for v in (ixix, iyiy, ixiy, ixit, iyit, ssd)))


class TestSolve:
    """Analytic inverse of the structure tensor"""

    def test_identity_tensor(self):
        flow = solve_flow(_tensor(1.0, 1.0, 0.0, -0.5, 0.2, 1.0))
        assert flow == pytest.approx([0.5, -0.2])

    def test_general_tensor_satisfies_normal_equations(self):
        t = _tensor(2.0, 3.0, 1.0, -1.0, -2.0, 10.0)
        flow = solve_flow(t)
        assert flow == pytest.approx([0.2, 0.6])
        lhs = np.array([[2.0, 1.0], [1.0, 3.0]]) @ flow
        assert lhs == pytest.approx([1.0, 2.0])

    def test_vectorized(self):
        t = _tensor([1.0, 2.0], [1.0, 3.0], [0.0, 1.0], [-0.5, -1.0], [0.2, -2.0], [1.0, 10.0])
        flow = solve_flow(t)
        assert flow.shape == (2, 2)
        assert flow[0] == pytest.approx([0.5, -0.2])
        assert flow[1] == pytest.approx([0.2, 0.6])


class TestDegenerate:
    """No gradient information -> exactly zero correction"""

    def test_zero_tensor(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            flow = solve_flow(_tensor(0, 0, 0, 0, 0, 0))
        assert flow.tolist() == [0.0, 0.0]

    def test_zero_gradients_with_residual(self):
        """D == 0 even though the gate passes"""
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            flow = solve_flow(_tensor(0, 0, 0, 0, 0, 5.0))
        assert flow.tolist() == [0.0, 0.0]

    def test_rank_one_tensor(self):
        """Aperture problem: parallel gradients, D == 0"""
        t = _tensor(1.0, 1.0, 1.0, -0.3, -0.3, 4.0)
        assert determinant(t) == 0.0
        assert solve_flow(t).tolist() == [0.0, 0.0]


class TestConfidenceGate:
    """SSD / (IxIx + IyIy) must exceed the threshold"""

    def test_boundary_is_rejected(self):
        """ratio exactly 0.1 fails the gate"""
        t = _tensor(1.0, 1.0, 0.0, -0.5, 0.2, 0.2)
        assert confidence_mask(t) == 0.0
        assert solve_flow(t).tolist() == [0.0, 0.0]

    def test_low_residual_masks_everything(self):
        t = _tensor(4.0, 2.0, 0.5, -1.0, 1.0, 0.3)
        masked = t.masked(confidence_mask(t))
        assert all(float(term) == 0.0 for term in masked)
        assert solve_flow(t).tolist() == [0.0, 0.0]

    def test_above_threshold_passes(self):
        t = _tensor(1.0, 1.0, 0.0, -0.5, 0.2, 0.21)
        assert confidence_mask(t) == 1.0

    def test_custom_threshold(self):
        t = _tensor(1.0, 1.0, 0.0, -0.5, 0.2, 1.0)
        assert solve_flow(t, threshold=0.6).tolist() == [0.0, 0.0]
        assert solve_flow(t, threshold=0.4) == pytest.approx([0.5, -0.2])

    def test_no_contrast_no_residual_rejected(self):
        assert confidence_mask(_tensor(0, 0, 0, 0, 0, 0)) == 0.0
