"""
Tests for the fixed-range codec and pixel/normalized conversion.

Checks:
1. Range constant derived from the storage format
2. Round-trip through half-float storage
3. Clamping at every normalization boundary
"""

import numpy as np
import pytest

from invariant_lk.fixed_range import (
    FIXED_MAX,
    decode_to_normalized,
    encode_from_normalized,
    fixed_range_max,
    to_normalized,
    to_pixel,
)


class TestFixedRangeMax:
    """Largest finite magnitude of the storage format"""

    def test_half_precision_value(self):
        """2**15 * (1 + 1023/1024)"""
        assert FIXED_MAX == 65504.0
        assert FIXED_MAX == float(np.finfo(np.float16).max)

    def test_single_precision_matches_finfo(self):
        assert fixed_range_max(np.float32) == pytest.approx(float(np.finfo(np.float32).max))


class TestCodec:
    """Encode/decode between normalized and fixed-range units"""

    def test_round_trip_through_half_storage(self):
        """Loss bounded by half-float precision"""
        rng = np.random.default_rng(3)
        v = rng.uniform(-1.0, 1.0, size=(500, 2))
        v[0] = [-1.0, 1.0]
        v[1] = [0.0, 0.0]
        stored = encode_from_normalized(v, dtype=np.float16)
        assert stored.dtype == np.float16
        back = decode_to_normalized(stored)
        assert np.allclose(back, v, rtol=0, atol=np.finfo(np.float16).eps)

    def test_round_trip_unquantized_exact(self):
        v = np.array([0.25, -0.75])
        assert decode_to_normalized(encode_from_normalized(v)) == pytest.approx(v)

    def test_decode_clamps(self):
        out = decode_to_normalized(np.array([3 * FIXED_MAX, -2 * FIXED_MAX]))
        assert out.tolist() == [1.0, -1.0]

    def test_encode_scales_by_range(self):
        assert encode_from_normalized([0.5, -1.0]).tolist() == [FIXED_MAX / 2, -FIXED_MAX]


class TestVectorNormalization:
    """Pixel units <-> normalized texture units"""

    def test_to_normalized(self):
        out = to_normalized([4.0, -2.0], [1 / 64.0, 1 / 32.0])
        assert out == pytest.approx([0.0625, -0.0625])

    def test_inverse_when_unclamped(self):
        rng = np.random.default_rng(11)
        size = np.array([1 / 128.0, 1 / 96.0])
        p = rng.uniform(-50.0, 50.0, size=(100, 2))
        assert np.allclose(to_pixel(to_normalized(p, size), size), p)

    def test_saturates(self):
        out = to_normalized([500.0, -500.0], [1 / 64.0, 1 / 64.0])
        assert out.tolist() == [1.0, -1.0]

    def test_sign_of_size_ignored(self):
        size = np.array([-1 / 64.0, 1 / 64.0])
        assert to_normalized([2.0, 2.0], size) == pytest.approx([1 / 32.0, 1 / 32.0])
        assert to_pixel([1 / 32.0, 1 / 32.0], size) == pytest.approx([2.0, 2.0])
