"""Shared fixtures: synthetic colour frames with known motion."""

import matplotlib

matplotlib.use('Agg')

import pytest

from invariant_lk.gen_test_data import synthetic_texture
from invariant_lk.pyramid import prepare_frame


@pytest.fixture
def make_pair():
    """Factory for (previous, current) float RGB frames shifted by (dx, dy) pixels."""

    def _make(width=96, height=96, dx=0.0, dy=0.0, pattern='sinusoid', period=48.0):
        prev = synthetic_texture(width, height, pattern, period)
        curr = synthetic_texture(width, height, pattern, period, dx=dx, dy=dy)
        return prepare_frame(prev, bgr=True), prepare_frame(curr, bgr=True)

    return _make
