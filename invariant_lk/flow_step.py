"""
Per-pixel flow refinement for one pyramid level.

``refine_flow`` is the entry point: warp by the incoming estimate,
accumulate the windowed gradients, solve, compose with the incoming vector,
and re-encode. It is total: any finite input yields a finite, bounded output.
"""

import numpy as np

from .accumulator import accumulate_window
from .config import FlowParams
from .fixed_range import (
    decode_to_normalized,
    encode_from_normalized,
    to_normalized,
)
from .solver import solve_flow

# Upper bound of the half-open texture range [0, 1)
_BELOW_ONE = np.nextafter(1.0, 0.0)


def texture_grid(height, width):
    """Texture coordinates of every pixel centre, shape (height, width, 2)."""
    u = (np.arange(width, dtype=np.float64) + 0.5) / width
    v = (np.arange(height, dtype=np.float64) + 0.5) / height
    uu, vv = np.meshgrid(u, v)
    return np.stack([uu, vv], axis=-1)


def coordinate_derivatives(grid):
    """Screen-space derivatives (ddx, ddy) of a (H, W, 2) coordinate grid."""
    ddy, ddx = np.gradient(np.asarray(grid, dtype=np.float64), axis=(0, 1))
    return ddx, ddy


def default_derivatives(coord, sampler):
    """
    Derivatives used when the caller supplies none.

    One texel of ``sampler`` if it exposes ``texel_size``; otherwise the
    spacing of a (H, W, 2) coordinate grid. A lone coordinate sampled by a
    plain function has no footprint: the derivatives are zero and the
    incoming estimate passes through unrefined.
    """
    texel = getattr(sampler, 'texel_size', None)
    if texel is not None:
        return np.array([texel[0], 0.0]), np.array([0.0, texel[1]])

    coord = np.asarray(coord, dtype=np.float64)
    if coord.ndim == 3 and coord.shape[0] >= 2 and coord.shape[1] >= 2:
        return coordinate_derivatives(coord)
    return np.zeros(2), np.zeros(2)


def warp_coordinate(coord, incoming):
    """
    Displace texture coordinates by an encoded flow vector.

    The addition happens in the encoded domain, matching storage precision;
    the result is clamped back to [0, 1).
    """
    centered = np.asarray(coord, dtype=np.float64) - 0.5
    moved = encode_from_normalized(centered) + np.asarray(incoming, dtype=np.float64)
    warped = decode_to_normalized(moved) + 0.5
    return np.clip(warped, 0.0, _BELOW_ONE)


def refine_flow(coord, incoming, current, previous, ddx=None, ddy=None, params=None):
    """
    Refine an encoded flow estimate at one pyramid level.

    Args:
        coord: Texture coordinates (..., 2) in [0, 1)
        incoming: Encoded flow estimate (..., 2) from the coarser level
        current: Sampler for the current frame, called as (coords, ddx, ddy)
        previous: Sampler for the previous frame
        ddx, ddy: Screen-space derivatives of coord. See default_derivatives.
        params: FlowParams; kernel fields only are used

    Returns:
        Refined encoded flow (..., 2)
    """
    if params is None:
        params = FlowParams()
    if ddx is None or ddy is None:
        ddx, ddy = default_derivatives(coord, current)

    ddx = np.asarray(ddx, dtype=np.float64)
    ddy = np.asarray(ddy, dtype=np.float64)

    base = decode_to_normalized(incoming)
    warped = warp_coordinate(coord, incoming)
    pixel_size = np.abs(ddx) + np.abs(ddy)

    tensor = accumulate_window(
        current, previous, coord, warped, ddx, ddy, pixel_size,
        window_size=params.window_size,
        window_angle=params.window_angle,
        tap_radius=params.tap_radius,
    )
    correction = solve_flow(tensor, params.confidence_threshold)

    refined = np.clip(base + to_normalized(correction, pixel_size), -1.0, 1.0)
    return encode_from_normalized(refined)
