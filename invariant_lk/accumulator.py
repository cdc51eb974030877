"""
Windowed gradient accumulation over a rotated sampling window.

For each window tap the current frame is sampled at the warped position and
the previous frame at the unwarped one. Spatial gradients come from four extra
taps on the current frame. The products are summed into a 2x2 structure
tensor plus the temporal cross terms.
"""

from functools import lru_cache
from typing import NamedTuple

import numpy as np

from .color_invariant import color_invariant


class StructureTensor(NamedTuple):
    ixix: np.ndarray
    iyiy: np.ndarray
    ixiy: np.ndarray
    ixit: np.ndarray
    iyit: np.ndarray
    ssd: np.ndarray

    def masked(self, mask):
        """Every accumulator multiplied by ``mask``."""
        return StructureTensor(*(term * mask for term in self))


@lru_cache(maxsize=None)
def rotation_matrix(angle_deg):
    theta = np.radians(angle_deg)
    rot = np.array([[np.cos(theta), -np.sin(theta)],
                    [np.sin(theta), np.cos(theta)]])
    rot.flags.writeable = False
    return rot


@lru_cache(maxsize=None)
def window_offsets(size=3, angle_deg=45.0):
    """
    Centred size x size grid of pixel offsets, rotated by angle_deg.

    Returns a read-only (size * size, 2) array in pixel units.
    """
    half = size // 2
    steps = np.arange(size, dtype=np.float64) - half
    oy, ox = np.meshgrid(steps, steps, indexing='ij')
    grid = np.stack([ox.ravel(), oy.ravel()], axis=-1)
    offsets = grid @ rotation_matrix(angle_deg).T
    offsets.flags.writeable = False
    return offsets


def _dot(a, b):
    """Dot over invariant channels, summed over the window axis."""
    return np.sum(a * b, axis=-1).sum(axis=0)


def accumulate_window(current, previous, coord, warped, ddx, ddy, pixel_size,
                      window_size=3, window_angle=45.0, tap_radius=0.5):
    """
    Accumulate the structure tensor around one (or many) pixels.

    Args:
        current: Sampler for the reference (current) frame
        previous: Sampler for the prior frame
        coord: Unwarped texture coordinates (..., 2)
        warped: Coordinates displaced by the incoming flow (..., 2)
        ddx, ddy: Screen-space derivatives of coord, passed to the samplers
        pixel_size: Per-axis pixel size in texture units (..., 2)
        window_size: Side of the sampling window (odd)
        window_angle: Window rotation in degrees
        tap_radius: Gradient tap distance in pixels

    Returns:
        StructureTensor with one entry per coordinate
    """
    coord = np.asarray(coord, dtype=np.float64)
    warped = np.asarray(warped, dtype=np.float64)
    pixel_size = np.asarray(pixel_size, dtype=np.float64)

    offsets = window_offsets(window_size, window_angle)
    # (K, 1, ..., 1, 2) so offsets broadcast against every coordinate
    offsets = offsets.reshape((offsets.shape[0],) + (1,) * (coord.ndim - 1) + (2,))
    offset_uv = offsets * pixel_size

    # center, east, west, north, south
    taps = np.array([[0.0, 0.0],
                     [tap_radius, 0.0],
                     [-tap_radius, 0.0],
                     [0.0, tap_radius],
                     [0.0, -tap_radius]])
    taps = taps.reshape((5, 1) + (1,) * (coord.ndim - 1) + (2,))
    tap_uv = taps * pixel_size

    ref = color_invariant(current(warped + offset_uv + tap_uv, ddx, ddy))
    prior = color_invariant(previous(coord + offset_uv, ddx, ddy))

    center, east, west, north, south = ref
    it = center - prior
    ix = east - west
    iy = north - south

    return StructureTensor(
        ixix=_dot(ix, ix),
        iyiy=_dot(iy, iy),
        ixiy=_dot(ix, iy),
        ixit=_dot(ix, it),
        iyit=_dot(iy, it),
        ssd=_dot(it, it),
    )
