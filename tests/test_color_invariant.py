"""
Tests for the photometric-invariant colour mapping.

Checks:
1. Output range and finiteness, including degenerate colours
2. Fallback angles where hue or elevation is undefined
3. Invariance to multiplicative lighting changes
"""

import warnings

import numpy as np
import pytest

from invariant_lk.color_invariant import HUE_FALLBACK, LUMA_FALLBACK, color_invariant


class TestDegenerateColours:
    """Zero denominators map to fixed fallback angles"""

    def test_black_uses_both_fallbacks(self):
        """(0, 0, 0): bisector hue, 1/sqrt(3) elevation"""
        out = color_invariant([0.0, 0.0, 0.0])
        assert out[0] == pytest.approx(np.arcsin(HUE_FALLBACK) * 2 / np.pi)
        assert out[0] == pytest.approx(0.5)
        assert out[1] == pytest.approx(np.arcsin(LUMA_FALLBACK) * 2 / np.pi)

    def test_pure_blue_has_zero_elevation(self):
        """rg length 0 with b > 0: fallback hue, elevation 0"""
        out = color_invariant([0.0, 0.0, 0.7])
        assert out[0] == pytest.approx(0.5)
        assert out[1] == pytest.approx(0.0)

    def test_pure_green(self):
        out = color_invariant([0.0, 0.4, 0.0])
        assert out == pytest.approx([1.0, 1.0])

    def test_pure_red(self):
        out = color_invariant([0.9, 0.0, 0.0])
        assert out == pytest.approx([0.0, 1.0])

    def test_no_numpy_warnings(self):
        """Degenerate inputs never emit divide or invalid warnings"""
        colours = np.array([[0, 0, 0], [0, 0, 1], [0, 1e-300, 0]], dtype=np.float64)
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            out = color_invariant(colours)
        assert np.all(np.isfinite(out))


class TestRange:
    """Both channels always lie in [0, 1]"""

    def test_random_colours_bounded(self):
        rng = np.random.default_rng(7)
        colours = rng.uniform(0.0, 1.0, size=(1000, 3))
        colours[::10] = 0.0
        out = color_invariant(colours)
        assert out.shape == (1000, 2)
        assert np.all(np.isfinite(out))
        assert np.all(out >= 0.0)
        assert np.all(out <= 1.0)

    def test_shape_preserved(self):
        out = color_invariant(np.zeros((4, 5, 3)))
        assert out.shape == (4, 5, 2)


class TestLightingInvariance:
    """Multiplicative illumination changes leave the invariant unchanged"""

    @pytest.mark.parametrize("gain", [0.1, 0.5, 2.0])
    def test_scaled_colour_same_invariant(self, gain):
        colour = np.array([0.3, 0.45, 0.2])
        assert color_invariant(colour * gain) == pytest.approx(color_invariant(colour))

    def test_grey_levels_identical(self):
        """All greys share one invariant value: intensity alone carries no gradient"""
        greys = np.linspace(0.05, 1.0, 20)[:, None] * np.ones(3)
        out = color_invariant(greys)
        assert np.allclose(out, out[0])
